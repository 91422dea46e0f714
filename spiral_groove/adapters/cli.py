"""
CLI Adapter - Command-line interface.

Thin wrapper over the codec and the player.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from spiral_groove.errors import GrooveError


def main(args: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="spiral-groove",
        description="Encode audio into spiral record grooves and play them back",
    )
    parser.add_argument(
        "--log-level",
        default="warning",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: warning)",
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit session events as JSON")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # encode command
    encode_parser = subparsers.add_parser("encode", help="Encode an audio file into a groove")
    encode_parser.add_argument("input", help="Audio file (WAV, FLAC, OGG, ...)")
    encode_parser.add_argument("-o", "--output", help="Output groove file (default: <input>.svg)")
    encode_parser.add_argument("-q", "--quality", type=int, default=3, help="Quality 1-5 (default: 3)")
    encode_parser.add_argument("-t", "--turns", type=float, default=6.0, help="Spiral turns (default: 6)")
    encode_parser.add_argument(
        "-s", "--sensitivity", type=float, default=5.0, help="Max radial deviation (default: 5)"
    )
    encode_parser.add_argument("--mono", action="store_true", help="Encode a mono groove")
    encode_parser.add_argument("--rout", type=float, default=220.0, help="Outer radius (default: 220)")
    encode_parser.add_argument("--rin", type=float, default=40.0, help="Inner radius (default: 40)")

    # decode command
    decode_parser = subparsers.add_parser("decode", help="Decode a groove into a WAV file")
    decode_parser.add_argument("input", help="Groove file")
    decode_parser.add_argument("-o", "--output", help="Output WAV (default: <input>.wav)")

    # info command
    info_parser = subparsers.add_parser("info", help="Show groove geometry")
    info_parser.add_argument("input", help="Groove file")

    # play command
    play_parser = subparsers.add_parser("play", help="Play a groove or audio file")
    play_parser.add_argument("input", help="Groove file or audio file")
    play_parser.add_argument("-r", "--rate", type=float, default=1.0, help="Speed multiplier")
    play_parser.add_argument("--start", type=float, default=0.0, help="Start position 0-1")

    # version command
    subparsers.add_parser("version", help="Show version")

    parsed = parser.parse_args(args)

    if parsed.command is None:
        parser.print_help()
        return 0

    _configure(parsed)

    if parsed.command == "version":
        from spiral_groove import __version__
        print(f"spiral-groove {__version__}")
        return 0

    handlers = {
        "encode": _cmd_encode,
        "decode": _cmd_decode,
        "info": _cmd_info,
        "play": _cmd_play,
    }
    try:
        return handlers[parsed.command](parsed)
    except (GrooveError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _configure(args: argparse.Namespace) -> None:
    import logging

    from spiral_groove.monitoring import configure_logging

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    configure_logging(args.log_level, json_format=args.json_logs)


def _cmd_encode(args: argparse.Namespace) -> int:
    """Handle encode command."""
    from spiral_groove.adapters.audio_io import load_audio, write_groove
    from spiral_groove.codec import GrooveEncoder
    from spiral_groove.config import DiscGeometry, EncoderConfig
    from spiral_groove.monitoring import get_logger

    source = Path(args.input)
    output = Path(args.output) if args.output else source.with_suffix(".svg")

    config = EncoderConfig(
        quality=args.quality,
        turns=args.turns,
        sensitivity=args.sensitivity,
        geometry=DiscGeometry(r_out=args.rout, r_in=args.rin),
        stereo=not args.mono,
    )
    left, right, sample_rate = load_audio(source)
    groove = GrooveEncoder(config).encode(left, right, sample_rate)
    write_groove(output, groove)

    get_logger().groove_encoded(
        groove.vertices,
        config.turns,
        groove.descriptor.k or 0.0,
        path=str(output),
        stereo=groove.is_stereo,
    )
    print(groove.summary)
    print(f"Groove saved to: {output}")
    return 0


def _cmd_decode(args: argparse.Namespace) -> int:
    """Handle decode command."""
    from spiral_groove.adapters.audio_io import read_groove, write_wav
    from spiral_groove.codec import GrooveDecoder
    from spiral_groove.monitoring import get_logger

    source = Path(args.input)
    output = Path(args.output) if args.output else source.with_suffix(".wav")

    audio = GrooveDecoder().decode(read_groove(source))
    rate = write_wav(output, audio)

    get_logger().groove_decoded(len(audio.left), rate, audio.is_stereo, path=str(output))
    print(f"Audio saved to: {output}")
    print(f"Duration: {audio.duration:.2f}s @ {rate}Hz ({'stereo' if audio.is_stereo else 'mono'})")
    return 0


def _cmd_info(args: argparse.Namespace) -> int:
    """Show groove geometry without decoding audio."""
    from spiral_groove.adapters.audio_io import read_groove
    from spiral_groove.codec import estimate_turns

    doc = read_groove(Path(args.input))
    desc = doc.descriptor
    scale = desc.coordinate_scale
    cx = desc.cx if desc.cx is not None else (doc.circles[0].cx / scale if doc.circles else 260.0)
    cy = desc.cy if desc.cy is not None else (doc.circles[0].cy / scale if doc.circles else 260.0)
    estimated = estimate_turns(doc.points / scale, cx, cy)

    print(f"Groove: {args.input}")
    print(f"  Version:      {desc.version}")
    print(f"  Vertices:     {doc.vertices}")
    print(f"  Sample rate:  {desc.sample_rate or 'unknown'}")
    print(f"  Turns:        {desc.turns if desc.turns else 'unknown'} (estimated {estimated:.2f})")
    print(f"  Radii:        {desc.r_out} -> {desc.r_in}")
    print(f"  k:            {desc.k if desc.k else 'estimated at decode'}")
    print(f"  Orig. length: {desc.original_length}")
    print(f"  Companding:   {'mu-law' if desc.companding else 'none'}")
    print(f"  Emphasis:     {desc.emphasis.mode.value}")
    print(f"  Stereo:       {desc.stereo}")
    print(f"  Scale:        x{scale}")
    return 0


def _cmd_play(args: argparse.Namespace) -> int:
    """Play a groove (or an audio file) through the default output device."""
    from spiral_groove.adapters.audio_io import load_audio, read_groove
    from spiral_groove.codec import GrooveDecoder
    from spiral_groove.playback import GroovePlayer

    source = Path(args.input)
    player = GroovePlayer()
    errors: list[GrooveError] = []
    player.on_error(errors.append)

    if source.suffix.lower() == ".svg":
        started = player.start(
            GrooveDecoder().decode(read_groove(source)),
            rate=args.rate,
            start_progress=args.start,
        )
    else:
        left, right, sample_rate = load_audio(source)
        started = player.start(
            left,
            sample_rate=sample_rate,
            right=right,
            rate=args.rate,
            start_progress=args.start,
        )

    if not started:
        print(f"(Playback failed: {errors[0] if errors else 'unknown error'})", file=sys.stderr)
        return 1

    try:
        player.wait()
    except KeyboardInterrupt:
        player.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())

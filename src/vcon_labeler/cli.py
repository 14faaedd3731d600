"""CLI entry point."""

from __future__ import annotations

import argparse
import os
import wave
from typing import List

from .audio_utils import export_region_audio, probe_wav
from .config import Config, load_config_or_default, save_config
from .controller import LabelingSession
from .display import aggregate_rows
from .errors import LabelerError
from .logging_utils import setup_logging
from .models import LEFT, PARTY_ROLES, RIGHT, TARGETS, DisplayRow
from .parties import PartyRegistry
from .session_io import parse_vcon
from .storage import LocalFileAccess, session_path_for


def _format_row(index: int, row: DisplayRow) -> str:
    party = row.party.name or row.party.id if row.party else "-"
    return (
        f"[{index}] {row.start:.3f}s-{row.end:.3f}s "
        f"{row.channel:<6} {row.type}={row.value or '-'} ({party})"
    )


def _print_rows(rows: List[DisplayRow]) -> None:
    if not rows:
        print("No labels yet.")
    for index, row in enumerate(rows):
        print(_format_row(index, row))


def _audio_duration(audio_path: str, suffix: str) -> float:
    try:
        return probe_wav(audio_path).duration
    except (OSError, EOFError, wave.Error) as exc:
        # wave only reads PCM WAV; other formats fall back to the stored duration
        session_path = session_path_for(audio_path, suffix)
        if os.path.exists(session_path):
            text = LocalFileAccess().read_file(session_path)
            media = parse_vcon(text).media
            if media and media.duration:
                return media.duration
        raise LabelerError(f"Cannot read duration of {audio_path}: {exc}") from exc


def _open_session(cfg: Config, audio_path: str) -> LabelingSession:
    session = LabelingSession(config=cfg)
    session.open(audio_path, _audio_duration(audio_path, cfg.session.suffix))
    return session


def _row_at(session: LabelingSession, index: int) -> DisplayRow:
    rows = session.rows()
    if index < 0 or index >= len(rows):
        raise LabelerError(f"No row {index}; session has {len(rows)} row(s).")
    return rows[index]


def main() -> int:
    parser = argparse.ArgumentParser(prog="vcon-labeler")
    parser.add_argument("--config", default="vcon_labeler.yml", help="Config file.")
    parser.add_argument("--verbose", action="store_true", help="Also log to stderr.")
    sub = parser.add_subparsers(dest="command")

    list_cmd = sub.add_parser("list")
    list_cmd.add_argument("directory", nargs="?", help="Directory with audio files.")

    show_cmd = sub.add_parser("show")
    show_cmd.add_argument("path", help="Audio file or -vcon.json session file.")

    label_cmd = sub.add_parser("label")
    label_cmd.add_argument("audio_path", help="Path to a stereo audio file.")
    label_cmd.add_argument("--start", type=float, required=True, help="Seconds.")
    label_cmd.add_argument("--end", type=float, required=True, help="Seconds.")
    label_cmd.add_argument("--type", help="Label type.")
    label_cmd.add_argument("--value", default="", help="Label value.")
    label_cmd.add_argument("--target", choices=TARGETS, default="left", help="Channel(s).")

    delete_cmd = sub.add_parser("delete")
    delete_cmd.add_argument("audio_path", help="Path to audio file.")
    delete_cmd.add_argument("--row", type=int, required=True, help="Row index from 'show'.")

    parties_cmd = sub.add_parser("parties")
    parties_cmd.add_argument("audio_path", help="Path to audio file.")
    parties_cmd.add_argument("--left-name", help="Left channel party name.")
    parties_cmd.add_argument("--left-role", choices=PARTY_ROLES, help="Left channel role.")
    parties_cmd.add_argument("--right-name", help="Right channel party name.")
    parties_cmd.add_argument("--right-role", choices=PARTY_ROLES, help="Right channel role.")

    export_cmd = sub.add_parser("export")
    export_cmd.add_argument("audio_path", help="Path to a 16-bit PCM WAV file.")
    export_cmd.add_argument("--row", type=int, required=True, help="Row index from 'show'.")
    export_cmd.add_argument("--out", required=True, help="Output WAV path.")

    config_cmd = sub.add_parser("config")
    config_cmd.add_argument("--path", help="Where to write the default config.")

    args = parser.parse_args()
    cfg = load_config_or_default(args.config)
    try:
        logger, _log_path = setup_logging(cfg.log_dir, cfg.log_level, console=args.verbose)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 1

    try:
        return _run(args, cfg)
    except (LabelerError, ValueError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"Error: {exc}")
        return 1


def _run(args: argparse.Namespace, cfg: Config) -> int:
    if args.command == "list":
        directory = args.directory or cfg.base_dir or os.getcwd()
        for audio_path in LocalFileAccess().list_audio_files(directory):
            has_session = os.path.exists(session_path_for(audio_path, cfg.session.suffix))
            marker = "*" if has_session else " "
            print(f"{marker} {os.path.basename(audio_path)}")
        return 0

    if args.command == "show":
        session_path = args.path
        if not session_path.endswith(".json"):
            session_path = session_path_for(args.path, cfg.session.suffix)
        document = parse_vcon(LocalFileAccess().read_file(session_path))
        parties = PartyRegistry(*document.parties) if document.parties else PartyRegistry()
        for channel, party in ((LEFT, parties.left), (RIGHT, parties.right)):
            side = "left" if channel == LEFT else "right"
            print(f"{side}: {party.name or '-'} ({party.role}, {party.id})")
        _print_rows(aggregate_rows(document.annotations, parties))
        return 0

    if args.command == "label":
        session = _open_session(cfg, args.audio_path)
        region = session.add_region(args.start, args.end)
        session.set_label(
            args.type or cfg.default_label_type, args.value, args.target, region.id
        )
        session.export()
        _print_rows(session.rows())
        return 0

    if args.command == "delete":
        session = _open_session(cfg, args.audio_path)
        removed = session.delete_row(_row_at(session, args.row))
        session.export()
        print(f"Removed {removed} label(s).")
        _print_rows(session.rows())
        return 0

    if args.command == "parties":
        session = _open_session(cfg, args.audio_path)
        session.update_party(LEFT, name=args.left_name, role=args.left_role)
        session.update_party(RIGHT, name=args.right_name, role=args.right_role)
        session.export()
        for party in session.parties.all():
            print(f"{party.id}: {party.name or '-'} ({party.role})")
        return 0

    if args.command == "export":
        session = _open_session(cfg, args.audio_path)
        row = _row_at(session, args.row)
        channels = {"left": [LEFT], "right": [RIGHT]}.get(row.channel, [LEFT, RIGHT])
        written = export_region_audio(args.audio_path, args.out, row.start, row.end, channels)
        print(f"Wrote {args.out} ({written:.3f}s)")
        return 0

    if args.command == "config":
        path = args.path or args.config
        save_config(path, cfg)
        print(f"Wrote {path}")
        return 0

    print("Use --help to see available commands.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

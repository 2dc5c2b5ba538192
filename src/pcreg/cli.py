"""Command line front end for a desk stored on disk.

Usage
-----
    pcreg show
    pcreg train add --number K812 --mission TER --od "METZ → NANCY"
    pcreg train delay TRN_1a2b3c4d5e6f 12 --cause Signalisation
    pcreg snapshot create "Début service 07:00"
    pcreg export -o exports/
    pcreg --storage-dir /tmp/desk import backup.json
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from pcreg._constants import RP_OFFSET_MAX_MINUTES, RP_OFFSET_MIN_MINUTES
from pcreg.config import DeskConfig
from pcreg.desk import RegulationDesk
from pcreg.exceptions import PcregError
from pcreg.models import Document, IncidentStatus, LogType, NetworkStatus, TrainStatus

DEFAULT_STORAGE_DIR = Path.home() / ".pcreg"


def _offset_minutes(value: str) -> int:
    try:
        minutes = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from exc
    if not RP_OFFSET_MIN_MINUTES <= minutes <= RP_OFFSET_MAX_MINUTES:
        raise argparse.ArgumentTypeError(
            f"offset must be between {RP_OFFSET_MIN_MINUTES} and {RP_OFFSET_MAX_MINUTES} minutes"
        )
    return minutes


def _print_document(document: Document, desk: RegulationDesk) -> None:
    summary = desk.summary()
    meta = document.meta
    settings = document.settings
    print(f"{settings.zone_name} • réseau: {settings.network_status} • opérateur: {settings.operator_name}")
    print(f"Heure RP: {desk.rp_now().strftime('%H:%M:%S')} (offset {settings.rp_offset_minutes:+d} min)")
    print(f"Dernière sauvegarde: {meta.last_saved_at or '—'} ({meta.last_saved_by})")
    print(
        f"Trains: {summary.trains} • incidents ouverts: {summary.open_incidents}"
        f" • retard moyen: {summary.average_delay} min • retenus: {summary.held}"
    )
    print()
    for train in document.trains:
        print(
            f"{train.id:<20} {train.number:<8} {train.mission:<6} {train.line:<4} "
            f"{train.delay_min:+4d} min  P{train.priority}  {train.status:<15} {train.od}"
        )
    open_incidents = [i for i in document.incidents if i.status != IncidentStatus.CLOSED]
    if open_incidents:
        print()
        for incident in open_incidents:
            print(
                f"{incident.id:<20} {incident.status:<9} "
                f"{incident.kind} • {incident.location} • {incident.severity}"
            )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pcreg", description="PC Régulation desk state tool.")
    parser.add_argument(
        "--storage-dir",
        type=Path,
        help="Directory holding the desk state (default: $PCREG_STORAGE_DIR or ~/.pcreg)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("show", help="Print the board")
    sub.add_parser("save", help="Write the document now")

    export = sub.add_parser("export", help="Export the document as JSON")
    export.add_argument(
        "--output", "-o", type=Path, help="Write a timestamped file into this directory instead of stdout"
    )

    imp = sub.add_parser("import", help="Replace the document with an exported JSON file")
    imp.add_argument("file", type=Path)

    reset = sub.add_parser("reset", help="Discard the document (snapshots are kept)")
    reset.add_argument("--yes", action="store_true", help="Confirm the reset")

    snapshot = sub.add_parser("snapshot", help="Manage named snapshots")
    snap_sub = snapshot.add_subparsers(dest="snapshot_command", required=True)
    snap_create = snap_sub.add_parser("create")
    snap_create.add_argument("name", nargs="?", default=None)
    snap_sub.add_parser("list")
    snap_restore = snap_sub.add_parser("restore")
    snap_restore.add_argument("id")
    snap_delete = snap_sub.add_parser("delete")
    snap_delete.add_argument("id")

    train = sub.add_parser("train", help="Edit trains")
    train_sub = train.add_subparsers(dest="train_command", required=True)
    train_add = train_sub.add_parser("add")
    train_add.add_argument("--number", required=True)
    train_add.add_argument("--mission", required=True)
    train_add.add_argument("--od", required=True, help="Origin → destination")
    train_add.add_argument("--line", default="")
    train_add.add_argument("--position", default="")
    train_add.add_argument("--priority", type=int, default=2, choices=(1, 2, 3))
    train_add.add_argument("--regulator")
    train_delay = train_sub.add_parser("delay")
    train_delay.add_argument("id")
    train_delay.add_argument("minutes", type=int)
    train_delay.add_argument("--cause", default="")
    train_status = train_sub.add_parser("status")
    train_status.add_argument("id")
    train_status.add_argument("status", choices=[s.value for s in TrainStatus])
    train_delete = train_sub.add_parser("delete")
    train_delete.add_argument("id")

    incident = sub.add_parser("incident", help="Edit incidents")
    inc_sub = incident.add_subparsers(dest="incident_command", required=True)
    inc_add = inc_sub.add_parser("add")
    inc_add.add_argument("--kind", default="Panne matériel")
    inc_add.add_argument("--location", required=True)
    inc_add.add_argument("--severity", default="Mineur")
    inc_add.add_argument("--description", required=True)
    inc_add.add_argument("--train")
    inc_cycle = inc_sub.add_parser("cycle", help="Advance the incident status")
    inc_cycle.add_argument("id")

    log = sub.add_parser("log", help="Write a journal entry")
    log.add_argument("text")
    log.add_argument("--type", default=LogType.INFORMATION.value, choices=[t.value for t in LogType])
    log.add_argument("--train")
    log.add_argument("--incident")

    settings = sub.add_parser("settings", help="Change operator settings")
    settings.add_argument("--zone")
    settings.add_argument("--operator")
    settings.add_argument("--status", choices=[s.value for s in NetworkStatus])
    settings.add_argument("--offset", type=_offset_minutes, help="RP clock offset in minutes (at most one year)")
    settings.add_argument("--autosave", action=argparse.BooleanOptionalAction, default=None)

    return parser


def _not_found(kind: str, ident: str) -> int:
    print(f"{kind} introuvable: {ident}", file=sys.stderr)
    return 1


def _run(args: argparse.Namespace, desk: RegulationDesk) -> int:
    command = args.command

    if command == "show":
        _print_document(desk.document, desk)
        return 0
    if command == "save":
        desk.save_now("manual")
        return 0
    if command == "export":
        if args.output is None:
            print(desk.export_document())
        else:
            print(desk.export_to(args.output))
        return 0
    if command == "import":
        document = desk.import_from(args.file)
        print(
            f"Import OK: {len(document.trains)} trains, "
            f"{len(document.incidents)} incidents, {len(document.logs)} entrées"
        )
        return 0
    if command == "reset":
        if not args.yes:
            print("Refusing to reset without --yes", file=sys.stderr)
            return 1
        desk.reset()
        return 0

    if command == "snapshot":
        sc = args.snapshot_command
        if sc == "create":
            snapshot = desk.create_snapshot(args.name)
            print(snapshot.id)
        elif sc == "list":
            for snapshot in desk.list_snapshots():
                print(f"{snapshot.id:<22} {snapshot.created_at}  {snapshot.name}")
        elif sc == "restore":
            desk.restore_snapshot(args.id)
        elif sc == "delete":
            desk.delete_snapshot(args.id)
        return 0

    if command == "train":
        tc = args.train_command
        if tc == "add":
            train = desk.add_train(
                number=args.number,
                mission=args.mission,
                od=args.od,
                line=args.line,
                position=args.position,
                priority=args.priority,
                regulator=args.regulator or desk.document.settings.operator_name,
            )
            print(train.id)
        elif tc == "delay":
            if desk.apply_delay(args.id, args.minutes, cause=args.cause) is None:
                return _not_found("Train", args.id)
        elif tc == "status":
            if desk.set_train_status(args.id, args.status) is None:
                return _not_found("Train", args.id)
        elif tc == "delete":
            if desk.delete_train(args.id) is None:
                return _not_found("Train", args.id)
    elif command == "incident":
        ic = args.incident_command
        if ic == "add":
            incident = desk.add_incident(
                kind=args.kind,
                location=args.location,
                severity=args.severity,
                description=args.description,
                train_id=args.train,
            )
            print(incident.id)
        elif ic == "cycle":
            incident = desk.cycle_incident_status(args.id)
            if incident is None:
                return _not_found("Incident", args.id)
            print(incident.status)
    elif command == "log":
        desk.add_log(args.text, type=args.type, train_id=args.train, incident_id=args.incident)
    elif command == "settings":
        desk.apply_settings(
            zone_name=args.zone,
            operator_name=args.operator,
            network_status=args.status,
            rp_offset_minutes=args.offset,
            autosave=args.autosave,
        )
        return 0

    # One-shot process: persist edits before exiting instead of waiting on the debounce.
    desk.save_now("cli")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config = DeskConfig.from_env()
        storage_dir = args.storage_dir or config.storage_dir or DEFAULT_STORAGE_DIR
        desk = RegulationDesk(dataclasses.replace(config, storage_dir=storage_dir))
        desk.boot()
        return _run(args, desk)
    except (PcregError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""story-maker CLI entry point (developer tooling)."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="story-maker",
        description="Story Maker: versioned script, scene and shot document core",
    )
    parser.add_argument(
        "--log-level", default=None, metavar="LEVEL",
        help="Logging level (defaults to STORY_MAKER_LOG_LEVEL or INFO)",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.add_parser("intent-schema", help="Print the JSON Schema of intent payloads")
    replay_parser = sub.add_parser(
        "replay",
        help="Apply a JSON array of intents to a document and print the result",
    )
    replay_parser.add_argument(
        "--intents", required=True, metavar="intents.json",
        help="Path to a JSON file holding a list of intent payloads",
    )
    replay_parser.add_argument(
        "--from", dest="from_state", default=None, metavar="state.json",
        help="Start from this saved document instead of an empty one",
    )
    replay_parser.add_argument(
        "--output", default=None, metavar="state.json",
        help="Write the canonical document JSON here instead of stdout",
    )
    check_parser = sub.add_parser(
        "check", help="Validate a saved document and list unresolved references",
    )
    check_parser.add_argument("document", metavar="state.json")
    args = parser.parse_args(argv)

    from story_maker.observability import configure_logging
    configure_logging(args.log_level)

    if args.command == "intent-schema":
        from story_maker.intents import intent_json_schema
        print(json.dumps(intent_json_schema(), sort_keys=True, indent=2))
        sys.exit(0)
    elif args.command == "check":
        sys.exit(check_document(Path(args.document)))
    elif args.command == "replay":
        try:
            rendered = replay_intents(
                Path(args.intents),
                Path(args.from_state) if args.from_state else None,
            )
        except Exception as exc:
            message = str(exc)
            print(message if message.startswith("ERROR:") else f"ERROR: {message}")
            sys.exit(1)
        if args.output:
            Path(args.output).write_text(rendered + "\n", encoding="utf-8")
            print(f"OK: document written to {args.output}")
        else:
            print(rendered)
        sys.exit(0)
    else:
        parser.print_help()
        sys.exit(1)


def replay_intents(intents_path: Path, state_path: Path | None = None) -> str:
    """Validate and apply every intent in *intents_path*; return canonical JSON.

    The intents run against the saved document at *state_path*, or against
    an empty document when it is None.

    Raises:
        ValueError: a file is missing, is not JSON, or is not a list; an
            intent payload violates the intent schema (message names its
            position).
        story_maker.errors.StoryMakerError: the saved document is invalid or
            the gateway rejected an intent.
    """
    import jsonschema  # noqa: PLC0415
    from story_maker.contract_validate import validate_intent_payload
    from story_maker.document.store import EntityStore
    from story_maker.gateway import MutationGateway
    from story_maker.schemas.document_v1 import dump_document, load_document

    try:
        raw = intents_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ValueError(f"intents file not found: {intents_path}") from exc
    try:
        payloads = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON in {intents_path}: {exc}") from exc
    if not isinstance(payloads, list):
        raise ValueError("intents file must hold a JSON array")

    if state_path is None:
        store = EntityStore()
    else:
        try:
            store = EntityStore(load_document(state_path))
        except FileNotFoundError as exc:
            raise ValueError(f"document file not found: {state_path}") from exc
    gateway = MutationGateway(store)
    for position, payload in enumerate(payloads):
        try:
            validate_intent_payload(payload)
        except jsonschema.ValidationError as exc:
            raise ValueError(f"intent #{position} is invalid: {exc.message}") from exc
        gateway.dispatch(payload)
    return dump_document(gateway.view().document)


def check_document(document_path: Path) -> int:
    """Print every problem in a saved document; return the exit code.

    Unresolved references are printed as warnings and do not fail the check.
    """
    from story_maker.schemas.document_v1 import validate_document

    try:
        data = json.loads(document_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        print(f"ERROR: document file not found: {document_path}")
        return 1
    except json.JSONDecodeError as exc:
        print(f"ERROR: invalid JSON in {document_path}: {exc}")
        return 1

    failed = False
    for problem in validate_document(data):
        if problem.startswith("unresolved: "):
            print(f"WARN: {problem}")
        else:
            failed = True
            print(f"ERROR: {problem}")
    if not failed:
        print(f"OK: {document_path} is a valid document")
    return 1 if failed else 0

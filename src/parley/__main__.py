"""
Run a live Parley session from the terminal.

Usage:
    python -m parley --name Alice
    python -m parley --config my_config.yaml --model small.en
    python -m parley --list-engines

Interim text is shown on a single updating line; each final utterance is
printed with its classification. Ctrl+C stops and prints the transcript.
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv

from .app import ParleyApp
from .engines.factory import get_all_engines, get_all_models
from .errors import EngineUnavailable
from .logger import setup_logging
from .utils import ConfigManager


def _print_interim(text):
    print(f"\r... {text}"[:120].ljust(120), end="", flush=True)


def _print_final(transcript, classification):
    tags = [classification.type, classification.emotion]
    if classification.keywords:
        tags.append("keywords=" + ",".join(classification.keywords))
    print(f"\r[{transcript.timestamp:%H:%M:%S}] {transcript.participant}: {transcript.text}".ljust(120))
    print(f"    ({'; '.join(tags)})")


def _print_error(error):
    print(f"\r[!] {error}".ljust(120))


async def _run_session(app: ParleyApp, user_name: str) -> None:
    app.session.on_interim.subscribe(_print_interim)
    app.session.on_final.subscribe(_print_final)
    app.session.on_error.subscribe(_print_error)

    app.join(user_name)
    print(f"Listening as {user_name}. Press Ctrl+C to stop.")
    try:
        await asyncio.Event().wait()
    finally:
        app.leave()
        # Let the engine deliver its last final result and end event
        await asyncio.sleep(app.session.restart_delay * 5)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Live classified transcription from the microphone")
    parser.add_argument("--name", "-n", default="Me", help="Name transcripts are attributed to")
    parser.add_argument("--config", "-c", help="YAML config file (default: $PARLEY_CONFIG)")
    parser.add_argument("--model", "-m", help="Recognition model to use")
    parser.add_argument("--locale", help="Recognition locale, e.g. en-US")
    parser.add_argument("--list-engines", action="store_true", help="List recognition engines")
    parser.add_argument("--list-models", action="store_true", help="List models of the available engines")
    args = parser.parse_args(argv)

    load_dotenv()

    config = ConfigManager(config_path=args.config)
    if args.model:
        config.set_config_value(args.model, 'recognition', 'model')
    if args.locale:
        config.set_config_value(args.locale, 'recognition', 'locale')

    log_options = config.get_config_section('logging')
    setup_logging(
        level=log_options.get('level') or "INFO",
        log_to_file=bool(log_options.get('log_to_file')),
        log_dir=log_options.get('log_dir'),
    )

    if args.list_engines:
        for engine_id, engine_class in get_all_engines().items():
            status = "available" if engine_class.is_available() else engine_class.get_install_hint()
            print(f"  - {engine_id}: {engine_class.ENGINE_NAME} ({status})")
        return 0

    if args.list_models:
        for model in get_all_models():
            print(f"  - {model.id} [{model.engine}, {model.size_mb}MB]: {model.description}")
        return 0

    app = ParleyApp(config)
    try:
        asyncio.run(_run_session(app, args.name))
    except EngineUnavailable as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        pass

    print("\n--- Transcript ---")
    print(app.ledger.full_text() or "(nothing transcribed)")
    return 0


if __name__ == "__main__":
    sys.exit(main())

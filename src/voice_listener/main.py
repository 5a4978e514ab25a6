import argparse
import sys
from pathlib import Path

from .config.settings import create_example_env_file, load_config, setup_logging
from .errors import FatalError


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Homo voice listener")
    parser.add_argument("--config", type=str, help="Path to config file", default=".env")
    parser.add_argument("--create-config", action="store_true", help="Create example config file")
    parser.add_argument("--headless", action="store_true", help="Run without the terminal UI (implied by SILENCE_MODE)")
    parser.add_argument("--debug", "-d", action="store_true", help="Log at DEBUG level")

    args = parser.parse_args(argv)

    if args.create_config:
        create_example_env_file()
        print("Example configuration file created at .env.example")
        print("Please copy it to .env and fill in your API keys.")
        return 0

    try:
        config = load_config(Path(args.config) if args.config else None)
    except ValueError as e:
        print(f"Configuration error: {e}")
        print("Please check your configuration file and API keys.")
        return 2

    log_level = "DEBUG" if args.debug else config.log_level

    try:
        if args.headless or config.silence_mode:
            from .core.assistant import Assistant

            setup_logging(log_level, config.log_file)
            assistant = Assistant(config=config)
            assistant.run_headless()
        else:
            from textual.logging import TextualHandler
            from .tui.app import ListenerApp

            setup_logging(log_level, config.log_file, console_handler=TextualHandler())
            app = ListenerApp(config)
            app.run()
            assistant = app.assistant
    except FatalError as e:
        print(f"Fatal error: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nGoodbye!")
        return 0

    if assistant.fatal_error is not None:
        print(f"Fatal error: {assistant.fatal_error}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

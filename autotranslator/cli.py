"""Command-line entry point: translate the configured Valkyrie language files."""

import argparse
import sys
from typing import List, Optional

from autotranslator import language_codes as lc
from autotranslator.ai.exceptions import ConfigurationError
from autotranslator.config import load_config
from autotranslator.logger import configure_logging, get_logger, log_success

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="valkyrie-autotranslator",
        description="Translate Valkyrie scenario language files with DeepL or Azure Translator",
    )
    parser.add_argument("--config", default=None, help="Settings file (default: appsettings.json in the project root)")
    parser.add_argument("--input-path", default=None, help="Directory holding the input files")
    parser.add_argument("--input", dest="input_file_name", default=None,
                        help="Input file name, or *.ext for every file with that extension")
    parser.add_argument("--output-path", default=None, help="Directory for the translated files")
    parser.add_argument("--provider", choices=["deepl", "azure"], default=None, help="Machine-translation provider")
    parser.add_argument("--target-language", default=None, help="Target language code, e.g. de")
    parser.add_argument("--target-language-name", default=None, help="Target language name, e.g. German")
    parser.add_argument("--no-translate", action="store_true", help="Only normalize values, do not call the provider")
    parser.add_argument("--log-mode", choices=["off", "info", "debug"], default=None, help="Log verbosity")
    parser.add_argument("--log-to-file", action="store_true", help="Also write the log to logs/autotranslator.log")
    return parser


def apply_overrides(config: dict, args: argparse.Namespace) -> dict:
    """Copy command-line values over the loaded configuration."""
    io_config = config.setdefault('file_input_output', {})
    translation_config = config.setdefault('translation', {})

    if args.input_path:
        io_config['input_path'] = args.input_path
    if args.input_file_name:
        io_config['input_file_name'] = args.input_file_name
    if args.output_path:
        io_config['output_path'] = args.output_path
    if args.provider:
        translation_config['provider'] = args.provider
    if args.target_language:
        translation_config['target_language'] = args.target_language
        language_name = args.target_language_name or lc.get_language_name(args.target_language)
        if language_name:
            translation_config['target_language_name'] = language_name
        else:
            logger.warning(f"Unknown language code {args.target_language}, keeping the configured language name")
    if args.target_language_name:
        translation_config['target_language_name'] = args.target_language_name
    if args.no_translate:
        translation_config['translate'] = False
    if args.log_mode:
        config['log_mode'] = args.log_mode
    if args.log_to_file:
        config['log_to_file'] = True
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
        configure_logging(
            log_mode=config.get('log_mode', 'info'),
            log_to_file=bool(config.get('log_to_file')),
        )

        from autotranslator.translation.manager import TranslationManager

        manager = TranslationManager(config)
        results = manager.create_translated_files()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    failed = [r.file_name for r in results if r.phase == "failed"]
    if failed:
        logger.error(f"Failed to translate {len(failed)} file(s): {', '.join(failed)}")
        return 1

    log_success(logger, f"Translated {len(results)} file(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())

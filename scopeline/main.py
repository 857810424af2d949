import argparse
import logging
import sys
from typing import Optional, Sequence

from PySide6.QtWidgets import QApplication

from core.runtime import ScopelineRuntime
from daq.registry import create_backend, list_backends
from gui import MainWindow
from shared.app_settings import AppSettingsStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scopeline",
        description="Live audio waveform display with device and resolution settings (press S).",
    )
    parser.add_argument("--backend", help="capture backend key (see --list-backends)")
    parser.add_argument("--emission-rate", type=float, help="sample requests per second (default 60)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging verbosity",
    )
    parser.add_argument("--list-backends", action="store_true", help="print available backends and exit")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_backends:
        for descriptor in list_backends():
            print(f"{descriptor.key:12s} {descriptor.name}  {descriptor.description}")
        return 0

    store = AppSettingsStore()
    overrides = {}
    if args.backend:
        overrides["backend"] = args.backend
    if args.emission_rate:
        overrides["emission_rate_hz"] = args.emission_rate
    if overrides:
        store.update(**overrides)
    settings = store.get()

    try:
        backend = create_backend(settings.backend, max_emit_samples=settings.max_emit_samples)
    except KeyError as exc:
        logger.error("%s", exc)
        return 2

    app = QApplication.instance() or QApplication(sys.argv if argv is None else ["scopeline", *argv])
    app.setApplicationName("Scopeline")
    runtime = ScopelineRuntime(backend, app_settings_store=store)
    window = MainWindow(runtime)
    window.show()
    runtime.start()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())

"""Certificate compliance server entry point.

Loads configuration with Hydra and starts the FastAPI application via
uvicorn.

Usage::

    poetry run python -m cert_compliance.main                      # default config
    poetry run python -m cert_compliance.main server.port=9000     # override
"""

from __future__ import annotations

import os
from pathlib import Path

import hydra
import uvicorn
from dotenv import load_dotenv
from loguru import logger
from omegaconf import DictConfig, open_dict

from cert_compliance.api.app import create_app

# Load .env before Hydra resolves ${oc.env:...} references
load_dotenv()


def _resolve_data_paths(cfg: DictConfig) -> None:
    """Anchor relative paths in ``cfg.data`` to the original working directory.

    Hydra changes the CWD to ``outputs/<date>/<time>/``.
    """
    original_cwd = Path(hydra.utils.get_original_cwd())

    with open_dict(cfg):
        for key in ("templates_dir",):
            resolved = Path(cfg.data[key])
            if not resolved.is_absolute():
                cfg.data[key] = str(original_cwd / resolved)


@hydra.main(version_base=None, config_path="../../conf", config_name="config")
def main(cfg: DictConfig) -> None:
    """Bootstrap the application from Hydra config and run uvicorn."""
    _resolve_data_paths(cfg)
    os.chdir(hydra.utils.get_original_cwd())

    app = create_app(cfg)

    host: str = cfg.server.host
    port: int = cfg.server.port
    debug: bool = cfg.server.debug

    logger.info(
        "Starting server on {host}:{port} (debug={debug})",
        host=host,
        port=port,
        debug=debug,
    )
    uvicorn.run(app, host=host, port=port, log_level="debug" if debug else "info")


if __name__ == "__main__":
    main()

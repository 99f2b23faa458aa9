"""
Serve use case — run the built inference server against a model.

    model present? else download → launch server
    → poll /health (bounded) → open browser → wait for exit
"""

from __future__ import annotations

import http.client
import logging
import subprocess
import urllib.error
import urllib.request
import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from gpuboot.core.errors import InstallVerificationTimeout, ServerError
from gpuboot.core.models.config import BootstrapConfig
from gpuboot.core.services.prereq.execution.download import download_file, filename_from_url
from gpuboot.core.services.prereq.execution.polling import wait_until
from gpuboot.core.services.project_build import server_binary

logger = logging.getLogger(__name__)

_HEALTH_TIMEOUT = 120.0


@dataclass
class ServeResult:
    model: Path
    url: str
    returncode: int | None = None

    def to_dict(self) -> dict:
        return {"model": str(self.model), "url": self.url, "returncode": self.returncode}


def ensure_model(config: BootstrapConfig, model_url: str) -> Path:
    """Download the model into the models directory unless it is there."""
    dest = config.models_dir / filename_from_url(model_url)
    if dest.is_file() and dest.stat().st_size > 0:
        logger.info("Using model %s", dest)
        return dest
    try:
        return download_file(model_url, dest, timeout=120)
    except OSError as e:
        raise ServerError(f"Cannot download model from {model_url}: {e}") from e


def is_healthy(url: str) -> bool:
    """True when the server's health endpoint answers 200."""
    try:
        with urllib.request.urlopen(f"{url}/health", timeout=2) as resp:
            return resp.status == 200
    except (urllib.error.URLError, http.client.HTTPException, OSError):
        return False


def run_serve(
    config: BootstrapConfig,
    *,
    model_url: str | None = None,
    port: int | None = None,
    open_browser: bool = True,
    health_timeout: float = _HEALTH_TIMEOUT,
    on_ready: Callable[[str], None] | None = None,
) -> ServeResult:
    """Start the server and block until it exits.

    Raises:
        ServerError: No built server, model download failed, or the
            server never became healthy.
    """
    binary = server_binary(config)
    if binary is None:
        raise ServerError(
            f"No llama-server binary under {config.build_dir}; run 'gpuboot install' first"
        )

    model = ensure_model(config, model_url or config.model_url)
    port = port or config.server_port
    url = f"http://127.0.0.1:{port}"
    result = ServeResult(model=model, url=url)

    cmd = [str(binary), "-m", str(model), "--port", str(port)]
    logger.info("Starting %s", " ".join(cmd))
    try:
        proc = subprocess.Popen(cmd)
    except OSError as e:
        raise ServerError(f"Cannot start {binary}: {e}") from e

    try:
        try:
            wait_until(
                lambda: proc.poll() is not None or is_healthy(url),
                timeout=health_timeout,
                interval=config.poll_interval,
                what="llama-server",
            )
        except InstallVerificationTimeout as e:
            raise ServerError(
                f"llama-server did not answer on {url}/health within {health_timeout:g}s"
            ) from e

        if proc.poll() is not None:
            raise ServerError(f"llama-server exited with code {proc.returncode}")

        logger.info("Server ready at %s", url)
        if on_ready is not None:
            on_ready(url)
        if open_browser:
            webbrowser.open(url)

        result.returncode = proc.wait()
    finally:
        if proc.poll() is None:
            proc.terminate()
            proc.wait()
    return result

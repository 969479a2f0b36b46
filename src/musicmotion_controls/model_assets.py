from __future__ import annotations

import logging
import os
import ssl
import subprocess
import urllib.request
from typing import Optional


logger = logging.getLogger(__name__)


GESTURE_RECOGNIZER_TASK_URL = (
    "https://storage.googleapis.com/mediapipe-models/gesture_recognizer/gesture_recognizer/float16/latest/gesture_recognizer.task"
)


def _ssl_context() -> ssl.SSLContext:
    # python.org macOS builds often ship without root certificates; certifi fixes that when present.
    try:
        import certifi  # type: ignore

        return ssl.create_default_context(cafile=certifi.where())
    except ImportError:
        return ssl.create_default_context()


def _remove_partial(path: str) -> None:
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError:
        logger.warning("could not remove partial download %s", path)


def _download_urllib(url: str, path: str, timeout_s: int) -> None:
    with urllib.request.urlopen(url, context=_ssl_context(), timeout=timeout_s) as r, open(path, "wb") as f:
        f.write(r.read())


def _download_curl(url: str, path: str) -> Optional[subprocess.CompletedProcess]:
    try:
        return subprocess.run(
            ["curl", "-L", "-o", path, url],
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError:
        return None


def ensure_gesture_recognizer_task(
    model_path: str, *, url: str = GESTURE_RECOGNIZER_TASK_URL, timeout_s: int = 30
) -> str:
    """
    Ensure `gesture_recognizer.task` exists at `model_path`.

    Downloads it from the MediaPipe model bucket when missing: urllib first, then curl.
    """

    if os.path.exists(model_path):
        return model_path

    os.makedirs(os.path.dirname(model_path) or ".", exist_ok=True)
    logger.info("downloading gesture recognizer model to %s", model_path)

    try:
        _download_urllib(url, model_path, timeout_s)
        return model_path
    except Exception as e:
        logger.warning("urllib download failed (%s); retrying with curl", e)
        _remove_partial(model_path)

        proc = _download_curl(url, model_path)
        if proc is not None and proc.returncode == 0 and os.path.exists(model_path) and os.path.getsize(model_path) > 0:
            return model_path
        _remove_partial(model_path)

        curl_err = ""
        if proc is not None:
            curl_err = f"\n\ncurl stderr:\n{proc.stderr.strip()}\n"

        raise RuntimeError(
            "Missing MediaPipe gesture recognizer model and auto-download failed.\n\n"
            f"Expected model at: {model_path}\n"
            f"URL: {url}\n\n"
            "Download it manually:\n"
            f'  mkdir -p "{os.path.dirname(model_path) or "."}"\n'
            f'  curl -L -o "{model_path}" "{url}"\n'
            f"{curl_err}"
        ) from e

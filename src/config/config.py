import os
import platform


def _default_user_agent():
    system = platform.system().lower() or "unknown"
    machine = platform.machine().lower() or "unknown"
    return f"fast/0.1 ({system}; {machine})"


class Config:
    """
    Configuration class for environment variables and default settings.
    """

    # Known api.fast.com token, used when no other token is supplied
    FAST_API_TOKEN = os.environ.get(
        "FAST_API_TOKEN", "YXNkZmFzZGxmbnNkYWZoYXNkZmhrYWxm"
    )
    FAST_API_URL = os.environ.get(
        "FAST_API_URL", "https://api.fast.com/netflix/speedtest/v2"
    )
    FAST_URL_COUNT = int(os.environ.get("FAST_URL_COUNT", "3"))
    FAST_USER_AGENT = os.environ.get("FAST_USER_AGENT", _default_user_agent())

    # Probe parallelism defaults to one worker per CPU
    FAST_WORKERS = int(os.environ.get("FAST_WORKERS", str(os.cpu_count() or 1)))
    FAST_DURATION_SECONDS = float(os.environ.get("FAST_DURATION_SECONDS", "1.0"))
    FAST_MAX_ITERATIONS = int(os.environ.get("FAST_MAX_ITERATIONS", "1000000000"))
    FAST_CALIBRATION_FRACTION = float(
        os.environ.get("FAST_CALIBRATION_FRACTION", "0.1")
    )
    FAST_HTTP_TIMEOUT = float(os.environ.get("FAST_HTTP_TIMEOUT", "30"))

    # Multiply the first download's size by the iteration count instead of summing
    FAST_UNIFORM_SIZE = os.environ.get("FAST_UNIFORM_SIZE", "false").lower() in (
        "1",
        "true",
        "yes",
    )

import os
import sys

from epd_weather.main import main
from epd_utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="run_fetch")


def require_network_path() -> None:
    """
    Optionally bail out early when no network path exists. Controlled by:
    - EPD_SKIP_NETWORK_CHECK=true to skip the check (useful in dev/tests)
    """
    if os.getenv("EPD_SKIP_NETWORK_CHECK", "false").lower() in ("1", "true", "yes"):
        logger.info("Skipping network preflight (EPD_SKIP_NETWORK_CHECK=true)")
        return
    if not os.path.exists("/sys/class/net") or not any(
        name != "lo" for name in os.listdir("/sys/class/net")
    ):
        logger.error("No network interface found; set EPD_SKIP_NETWORK_CHECK=true to bypass.")
        sys.exit(2)


if __name__ == "__main__":
    require_network_path()
    sys.exit(main())

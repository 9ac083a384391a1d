"""
Fetch the pretrained MTCNN graph into facetract/assets/.

Run once in a source checkout before building the distribution:

    python download_model.py
"""

import logging
import sys

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("download_model")

from facetract.model_loader import MODEL_URL, fetch_model


def main() -> int:
    try:
        target = fetch_model()
    except (OSError, RuntimeError) as e:
        logger.error("Failed to fetch %s: %s", MODEL_URL, e)
        return 1

    print(f"Model downloaded: {target}")
    print(f"Size: {target.stat().st_size / (1024 * 1024):.1f} MB")
    return 0


if __name__ == "__main__":
    sys.exit(main())

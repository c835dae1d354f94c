#!/usr/bin/env python3
"""
Example forwarding standard library logging to Loki
"""

import logging

from loki_logging import ClientConfig, LokiHandler


def main():
    handler = LokiHandler(
        ClientConfig(labels='{job="batch-report"}', send_level="info", batch_wait=2.0)
    )
    logger = logging.getLogger("report")
    logger.setLevel(logging.INFO)
    logger.addHandler(handler)

    for row in range(100):
        logger.info("processed row %d", row, extra={"row": row})

    try:
        1 / 0
    except ZeroDivisionError:
        logger.exception("report total failed")

    handler.close()


if __name__ == "__main__":
    main()

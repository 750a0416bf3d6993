"""WSGI entrypoint for the recipe box application.

Local development uses ``flask --app main run``, which imports the ``app``
object defined below. Any WSGI server can serve ``main:app`` in the same way.
"""

import logging
import os

from recipebox import create_app

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()


__all__ = ["app"]

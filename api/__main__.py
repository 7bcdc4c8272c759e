"""
Entrypoint for running the API in development: python -m api
"""
import logging
import os

from . import create_app

# APP_ENV picks the configuration class (see get_config())
app = create_app()

if __name__ == "__main__":
    # production deployments serve create_app() through a WSGI server instead
    host = os.getenv("FLASK_RUN_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_RUN_PORT", "8000"))
    debug = os.getenv("FLASK_DEBUG", str(app.config.get("DEBUG", True))).lower() in ("1", "true", "yes")
    logging.getLogger(__name__).info("Serving Foley Bookkeeper on %s:%s (debug=%s)", host, port, debug)
    app.run(host=host, port=port, debug=debug)

"""Development server: python -m api"""
import os

from . import create_app

if __name__ == "__main__":
    app = create_app()
    app.run(
        host=os.getenv("FLASK_RUN_HOST", "127.0.0.1"),
        port=int(os.getenv("FLASK_RUN_PORT", "8000")),
        debug=app.config["DEBUG"],
    )

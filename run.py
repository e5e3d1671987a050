"""
Local development entry point for the mock API server.

Creates the Flask app via create_app() and serves the /api endpoints the
sync layer talks to. Keeps startup simple and avoids embedding app logic here.
"""

import os
from plantpal import create_app

# Allow overriding config via environment variable for dev/test flexibility
os.environ.setdefault("PLANTPAL_CONFIG", "plantpal.config.DevConfig")

app = create_app()

if __name__ == "__main__":
    # Port 3001 matches the default PLANTPAL_API_BASE_URL
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 3001)), debug=os.getenv("FLASK_DEBUG", "1") == "1")

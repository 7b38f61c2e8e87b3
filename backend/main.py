"""
Redding Incidents Backend - FastAPI
Modular entry point. All logic is split across:
  config.py, models.py, fields.py, timestamps.py, zones.py, geocoding.py,
  normalizer.py, cache.py, data_fetchers.py, notifier.py, service.py, routes.py
"""

import logging

logging.basicConfig(level=logging.INFO)

from routes import app  # noqa: F401,E402

if __name__ == "__main__":
    import uvicorn
    from config import PORT
    uvicorn.run(app, host="0.0.0.0", port=PORT)

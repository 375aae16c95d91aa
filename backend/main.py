"""
SafeRoute Safety Backend — FastAPI + TomTom
Modular entry point. All logic is split across:
  config.py, models.py, errors.py, rate_limit.py, cache.py, data_fetchers.py,
  area.py, factors.py, scoring.py, pipeline.py, routes.py
"""

import logging

logging.basicConfig(level=logging.INFO)

from routes import app  # noqa: F401,E402

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

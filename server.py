#!/usr/bin/env python3
import logging, os, webbrowser

import uvicorn
from dotenv import load_dotenv

load_dotenv()

HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def main():
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    print(f"habit-score API running at http://{HOST}:{PORT}/api/v1/habits")
    if os.getenv("OPEN_BROWSER", "1") == "1":
        webbrowser.open(f"http://{HOST}:{PORT}/docs")
    uvicorn.run("app:app", host=HOST, port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()

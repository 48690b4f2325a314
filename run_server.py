#!/usr/bin/env python3
"""Run the fillbox API server."""

import logging
import os

import uvicorn


def main():
    logging.basicConfig(
        level=os.environ.get('FILLBOX_LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    print("Starting Fillbox API server...")
    print("API documentation available at: http://localhost:8000/docs")
    uvicorn.run(
        "server.app:app",
        host="0.0.0.0",
        port=int(os.environ.get('FILLBOX_PORT', 8000)),
        reload=os.environ.get('FILLBOX_RELOAD', '') == '1'
    )


if __name__ == "__main__":
    main()

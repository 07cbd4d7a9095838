#!/usr/bin/env python3
"""Run the codebatch API server."""
import uvicorn

from codebatch.api.dependencies import get_config

if __name__ == "__main__":
    config = get_config()
    uvicorn.run(
        "codebatch.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
    )

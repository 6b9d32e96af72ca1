#!/usr/bin/env python3
"""
Start the quoting API: python -m quoting
"""
import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "quoting.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "0") == "1",
    )


if __name__ == "__main__":
    main()

"""Package entry point for ``python -m caption_engine``.

HOW: ``--serve`` starts the reference transcript API with uvicorn.
Anything else is handed to the CLI's main().
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from caption_engine.server.app import run_api
        run_api()
    else:
        from caption_engine.cli import main
        main()

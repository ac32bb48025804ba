"""Package entry point for ``python -m caption_transcriber``.

WHY: Users run the transcriber as ``python -m caption_transcriber <url>``
for CLI mode, or ``python -m caption_transcriber --serve`` to start the
HTTP API.

HOW: Checks sys.argv for the ``--serve`` flag. If present, starts the
FastAPI app under uvicorn. Otherwise, delegates to the CLI's main().
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from caption_transcriber.server.app import run_api
        run_api()
    else:
        from caption_transcriber.cli import main
        main()

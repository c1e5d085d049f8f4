import asyncio
import contextlib
import logging
import os
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass

import uvicorn
from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .credentials import load_credentials
from .errors import BootstrapError
from .handler import Submission, SubmissionHandler
from .mailer import Mailer
from .sheets import SheetsClient

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Server error. Please try again."
INVALID_MESSAGE = "Please fill in all required fields."

router = APIRouter()


@dataclass
class Services:
    sheets: SheetsClient
    mailer: Mailer


def bootstrap(settings: Settings) -> Services:
    """
    Load credentials and build the outbound clients.

    Raises BootstrapError when the service cannot run: missing or broken
    credential file, or Google Sheets refusing to authenticate. SMTP is
    checked later, in the app lifespan, and never blocks startup.
    """
    bundle = load_credentials(settings.credentials_path)

    sheets = SheetsClient.from_credentials(bundle, settings.sheet_id, settings.sheet_range)
    sheets.authenticate()

    mailer = Mailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        use_tls=settings.smtp_use_tls,
        username=settings.email_user,
        password=settings.email_pass,
        sender_name=settings.sender_name,
        recipient=settings.notification_email,
    )
    return Services(sheets=sheets, mailer=mailer)


def create_app(services: Services, handler: SubmissionHandler | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # SMTP is checked in the background; serving never waits on it.
        app.state.smtp_check = asyncio.create_task(services.mailer.verify())
        yield
        if not app.state.smtp_check.done():
            app.state.smtp_check.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await app.state.smtp_check

    app = FastAPI(title="Form Relay API", version="0.1.0", lifespan=lifespan)

    # Website forms are served from several hosts; any origin may post.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.handler = handler or SubmissionHandler(services.sheets, services.mailer)
    app.add_exception_handler(RequestValidationError, _invalid_submission)
    app.include_router(router)
    return app


async def _invalid_submission(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}" for err in exc.errors()
    )
    logger.info("Rejected submission: %s", details)
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": INVALID_MESSAGE, "error": details},
    )


@router.post("/submit-form")
async def submit_form(submission: Submission, request: Request):
    handler: SubmissionHandler = request.app.state.handler
    try:
        message = await handler.handle(submission)
    except Exception as e:
        logger.exception("Error in submit-form")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": FAILURE_MESSAGE, "error": str(e)},
        )
    return {"success": True, "message": message}


@router.get("/healthz")
def healthz():
    return {"ok": True}


def main() -> int:
    load_dotenv()
    logging.basicConfig(
        level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = Settings.from_env(dotenv=False)
        services = bootstrap(settings)
    except BootstrapError as e:
        logger.critical("Startup failed: %s", e)
        return 1

    app = create_app(services)
    logger.info("Backend running at http://localhost:%d", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())

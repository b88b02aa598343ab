"""Logger smoke test: one line at each severity."""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

router = APIRouter()


@router.get("/loggerTest", response_class=PlainTextResponse)
async def logger_test(request: Request):
    logger = request.app.state.container.logger.bind(source="loggerTest")
    logger.debug("Debug log")
    logger.http("HTTP log")
    logger.info("Info log")
    logger.warning("Warning log")
    logger.error("Error log")
    logger.fatal("Fatal log")
    return "Logger test complete"

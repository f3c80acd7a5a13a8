"""Main FastAPI application for the Developer Toolbox plugin API."""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv('.env')

# Configure logging BEFORE importing any modules that use logger
log_level = os.getenv('LOG_LEVEL', 'INFO')
logging.basicConfig(
    level=getattr(logging, log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Import after logging is configured
from devtoolbox.config import ServerConfig
from devtoolbox.runtime import build_runtime
from devtoolbox.server import create_app

runtime = build_runtime()
config = ServerConfig.from_env()
app = create_app(runtime.plugin_manager, runtime.tool_registry, config)


@app.on_event("startup")
async def startup_event():
    """Load every discovered plugin before serving requests."""
    logger.info("Starting Developer Toolbox plugin API")
    logger.info(f"Working directory: {Path.cwd()}")

    results = await runtime.plugin_manager.load_all()
    for result in results:
        if not result.success:
            logger.warning(f"Plugin {result.plugin_id} not loaded: {result.error}")
    logger.info(f"{sum(1 for r in results if r.success)} plugin(s) active")


@app.on_event("shutdown")
async def shutdown_event():
    """Unload plugins so their cleanup hooks run."""
    logger.info("Shutting down Developer Toolbox plugin API")
    await runtime.plugin_manager.unload_all()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.host, port=config.port)

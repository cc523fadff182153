import logging
import os
import sys
import traceback

import uvicorn

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

# Allow running from a checkout without installing the package
current_dir = os.path.dirname(os.path.abspath(__file__))
src_path = os.path.join(current_dir, 'src')
sys.path.insert(0, src_path)

logger.info("=" * 60)
logger.info("HealthFlow Startup")
logger.info("=" * 60)
logger.info(f"Python version: {sys.version.split()[0]}")
logger.info(f"  APP_ENV: {os.environ.get('APP_ENV', 'not set')}")
logger.info(f"  STORE_PATH: {os.environ.get('STORE_PATH', 'not set')}")
logger.info(f"  AZURE_OPENAI_ENDPOINT: {'set' if os.environ.get('AZURE_OPENAI_ENDPOINT') else 'not set'}")
logger.info(f"  AZURE_OPENAI_API_KEY: {'set' if os.environ.get('AZURE_OPENAI_API_KEY') else 'not set'}")
logger.info(f"  AZURE_OPENAI_DEPLOYMENT_NAME: {os.environ.get('AZURE_OPENAI_DEPLOYMENT_NAME', 'not set')}")

if __name__ == "__main__":
    try:
        from healthflow.core.config import get_settings
        settings = get_settings()
        port = int(os.environ.get("PORT", settings.port))
        host = os.environ.get("HOST", settings.host)

        logger.info(f"Starting {settings.app_name} v{settings.app_version} on {host}:{port}")
        # Sessions live in process memory, so a single worker is required
        uvicorn.run(
            "healthflow.app:app",
            host=host,
            port=port,
            workers=1,
            log_level="info",
            access_log=True,
            timeout_keep_alive=75,
            timeout_graceful_shutdown=30,
        )
    except KeyboardInterrupt:
        logger.info("Shutting down due to keyboard interrupt")
        sys.exit(0)
    except Exception as e:
        logger.error(f"CRITICAL: Failed to start application: {type(e).__name__}: {e}")
        logger.error(traceback.format_exc())
        logger.error("Check AZURE_OPENAI_* settings and that STORE_PATH is writable")
        sys.exit(1)

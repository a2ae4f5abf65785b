"""Main entry point for the StudyQuest API server"""
import logging
import uvicorn
from studyquest.config import LOG_LEVEL, API_HOST, API_PORT
from studyquest.api.server import create_api_application

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


def main() -> None:
    """Main application entry point"""
    app = create_api_application()

    logger.info(f"Serving StudyQuest API on {API_HOST}:{API_PORT}")
    uvicorn.run(app, host=API_HOST, port=API_PORT, log_config=None)


if __name__ == "__main__":
    main()

# File: run.py
"""
Development server runner for the document QA API
"""
from app import create_app, setup_logging
from config import Config

logger = setup_logging(Config.LOG_LEVEL, Config.LOG_FILE)

# Create application
app = create_app()

if __name__ == '__main__':
    debug = Config.FLASK_ENV == 'development'

    logger.info("Starting document QA API server...")
    logger.info(f"Host: {Config.HOST} | Port: {Config.PORT} | Debug: {debug}")
    logger.info(f"Embedding backend: {Config.EMBEDDING_BACKEND} | Generation model: {Config.MISTRAL_MODEL}")

    app.run(
        host=Config.HOST,
        port=Config.PORT,
        debug=debug
    )

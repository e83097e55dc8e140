from pathlib import Path
import dotenv
import logging
import os


ROOT = Path(__file__).parent.parent

dotenv.load_dotenv(ROOT / '.env')

# Logging configuration
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given name"""
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    return logger


# Constants
VALID_ENVIRONMENTS = ['development', 'staging', 'production']
DEFAULT_ENVIRONMENT = 'development'
ENVIRONMENT_VARIABLE = 'MEILISYNC_ENV'

def current_environment() -> str:
    """
    Resolve the build environment from MEILISYNC_ENV.
    Returns:
        str: One of VALID_ENVIRONMENTS, 'development' when unset or unknown
    """
    environment = os.environ.get(ENVIRONMENT_VARIABLE, DEFAULT_ENVIRONMENT).strip().lower()
    if environment not in VALID_ENVIRONMENTS:
        logger.warning(f"Unknown environment '{environment}', using '{DEFAULT_ENVIRONMENT}'")
        return DEFAULT_ENVIRONMENT
    return environment

def is_development(environment: str) -> bool:
    """
    Check if the environment is development.
    Args:
        environment (str): The environment to check
    Returns:
        bool: True if the environment is development, False otherwise
    """
    return environment == 'development'

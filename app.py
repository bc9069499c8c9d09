from src.main.main import app
from src.config import config_instance
from src.utils.utils import is_development
import uvicorn


if __name__ == '__main__':
    # Start the FastAPI app
    if is_development(config_instance=config_instance):
        uvicorn.run("app:app", host="127.0.0.1", port=config_instance().PORT, reload=True, workers=1)
    else:
        uvicorn.run("app:app", host=config_instance().HOST, port=config_instance().PORT, reload=False, workers=1)

import uvicorn
from dotenv import load_dotenv


def main() -> None:
    load_dotenv()
    # Settings are read when app.main is imported, so the .env file must be loaded first.
    from app.main import app

    uvicorn.run(app, host="0.0.0.0", port=app.state.container.settings.port)


if __name__ == "__main__":
    main()

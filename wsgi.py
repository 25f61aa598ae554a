import os

from dotenv import load_dotenv

load_dotenv()

from revealday import create_app  # noqa: E402

application = create_app()

if __name__ == "__main__":
    application.run(
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "5000")),
        debug=application.config.get("APP_ENV") == "development",
    )

import os
import uvicorn
from dotenv import load_dotenv

def main():
    """Run the persona chat API"""
    load_dotenv()  # Provider keys and settings from .env

    uvicorn.run(
        "persona_chat.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", 8000)),
        reload=os.getenv("RELOAD", "false").lower() == "true",
        workers=1,
        log_level="info"
    )

if __name__ == "__main__":
    main()

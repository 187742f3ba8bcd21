"""
Bullion Desk - server launcher
Usage: python main.py   (or: uvicorn bullion_desk.main:app --port $PORT)
"""
import uvicorn

from bullion_desk.core.config import PORT

if __name__ == "__main__":
    uvicorn.run("bullion_desk.main:app", host="0.0.0.0", port=PORT)

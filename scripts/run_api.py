"""
Script to run the cat bond dashboard read API
"""
import os
import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "catbond_etl.api.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=False,
        log_level="info",
        access_log=True
    )

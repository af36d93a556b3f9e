"""Serverless entry point."""
from mangum import Mangum

from todo_api.main import app

# ASGI handler for AWS Lambda / Vercel style deployments
handler = Mangum(app, lifespan="off")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from queryspec.core.config import settings
from queryspec.core.log_config import configure_logging
from queryspec.core.request_logging import install_request_logging

configure_logging()

app = FastAPI(title=settings.APP_NAME, version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_request_logging(app)

@app.get("/health")
def health():
    return {"status": "ok"}

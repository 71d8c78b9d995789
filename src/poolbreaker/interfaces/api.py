"""
FastAPI REST API Interface
Programmatic access to the deobfuscation pipeline for automation and integration
"""

from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..core.pipeline import Pipeline, PipelineConfig
from ..core.presets import PresetLibrary
from ..core.techniques import get_all_techniques


# Initialize FastAPI app
app = FastAPI(
    title="poolbreaker API",
    description="String-array JavaScript deobfuscation",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

MAX_UPLOAD_BYTES = 5 * 1024 * 1024


def _run(code: str, preset: Optional[str]) -> dict:
    """Blocking pipeline run; call through run_in_threadpool, never on the event loop"""
    try:
        config = PipelineConfig.from_preset(preset or "balanced")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = Pipeline(config).run(code)
    response_data = result.to_dict()
    response_data['code'] = result.code
    response_data['preset'] = config.preset
    return response_data


@app.get("/")
async def root():
    """
    API root endpoint - health check and info
    """
    return {
        "service": "poolbreaker API",
        "version": __version__,
        "status": "operational",
        "endpoints": {
            "deobfuscate": "/deobfuscate",
            "deobfuscate_file": "/deobfuscate-file",
            "techniques": "/techniques",
            "health": "/health",
            "docs": "/docs"
        }
    }


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring
    """
    return {
        "status": "healthy",
        "service": "poolbreaker-api",
        "version": __version__
    }


@app.get("/techniques")
async def list_techniques():
    """
    List the technique roster in pipeline order, plus available presets
    """
    names = [t.get_name() for t in get_all_techniques()]
    return {
        'total_techniques': len(names),
        'techniques': names,
        'presets': PresetLibrary.list_presets(),
    }


@app.post("/deobfuscate")
async def deobfuscate_text(
    code: str = Form(..., description="JavaScript source to deobfuscate"),
    preset: Optional[str] = Form(None, description="conservative | balanced | aggressive")
):
    """
    Deobfuscate JavaScript posted as a form field

    Example:
    ```bash
    curl -X POST "http://localhost:8000/deobfuscate" \
         -F "code=<sample.js" \
         -F "preset=aggressive"
    ```
    """
    response_data = await run_in_threadpool(_run, code, preset)
    response_data['input_length'] = len(code)
    return JSONResponse(content=response_data)


@app.post("/deobfuscate-file")
async def deobfuscate_file(
    file: UploadFile = File(..., description="JavaScript file to deobfuscate"),
    preset: Optional[str] = Form(None, description="conservative | balanced | aggressive")
):
    """
    Deobfuscate an uploaded .js file

    Example:
    ```bash
    curl -X POST "http://localhost:8000/deobfuscate-file" \
         -F "file=@sample.js"
    ```
    """
    content = await file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail="File too large. Maximum size: 5MB"
        )

    try:
        code = content.decode('utf-8')
    except UnicodeDecodeError:
        code = content.decode('latin-1')

    response_data = await run_in_threadpool(_run, code, preset)
    response_data['filename'] = file.filename
    response_data['input_length'] = len(content)
    return JSONResponse(content=response_data)


# Run server with: uvicorn poolbreaker.interfaces.api:app --reload --host 0.0.0.0 --port 8000
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

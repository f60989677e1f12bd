"""
PDF Image Insert Backend - REST API for placing uploaded images into PDFs

This package provides a FastAPI-based web service that takes JPEG/PNG uploads
and returns a PDF. It supports:

- Inserting one image into a fixed box on the first page of a template PDF
- Building a new PDF with one page per uploaded image
- Appending one page per uploaded image to an uploaded PDF
- A health endpoint for load balancers and the frontend

PDF reading and writing is delegated to PyMuPDF and image decoding to Pillow;
the package itself only decides where each image goes on its page.

Key Components:
    - main: FastAPI application factory and HTTP endpoint definitions
    - compositor: Fit-and-center arithmetic and named placement policies
    - pdf_service: PdfComposer, which draws images onto template/new pages
    - uploads: Upload type/size checks and image decoding
    - configuration: OmegaConf-backed typed configuration
    - models: Pydantic models for geometry and responses
    - middleware: Request logging
    - utils: Filename and header helpers

Usage:
    Run the API server with:
        uvicorn pdf_insert_backend.main:app --host 0.0.0.0 --port 3001

    Or use the console script, which honours PORT and HOST:
        pdf-insert-backend

Architecture Principles:
    - Stateless requests: each one builds its own in-memory document
    - Configuration is loaded once and passed explicitly to the app factory
    - All errors are returned as JSON {"error": "..."} bodies
"""

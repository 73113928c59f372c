"""
Site CMS Backend - REST API for a single-page marketing site

This package provides a FastAPI-based web service behind the site's admin
panel. It enables:

- Admin login with a signed, time-limited bearer token
- Upload of service images with server-side compression
- Listing and deletion of uploaded images
- Reading and saving the page-data document (content and theme)

Key Components:
    - main: FastAPI application and HTTP endpoint definitions
    - auth: Credential check and bearer-token verification
    - image_pipeline: Upload validation and JPEG compression
    - image_directory: Listing and deletion within the upload directory
    - page_store: MongoDB persistence of the page-data document
    - configuration: Environment settings and the default page shape
    - client: httpx client for the admin API

Usage:
    Run the API server with:
        uvicorn site_cms_backend.main:app --reload --host 0.0.0.0 --port 5001

    Or use the console script, which reads HOST and PORT from the environment:
        site-cms-backend
"""

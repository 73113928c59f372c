from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContentModel(BaseModel):
    # Unknown keys are kept so newer admin panels can store fields the
    # backend does not know about yet.
    model_config = ConfigDict(extra="allow")


class Hero(ContentModel):
    title: Optional[str] = ""
    subtitle: Optional[str] = ""
    description: Optional[str] = ""


class About(ContentModel):
    text1: Optional[str] = ""
    text2: Optional[str] = ""
    features: List[str] = Field(default_factory=list)


class PortfolioPage(ContentModel):
    eyebrow: Optional[str] = ""
    heroTitle: Optional[str] = ""
    sectionTitle: Optional[str] = ""


class Service(ContentModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    image: Optional[str] = None
    imageFilename: Optional[str] = None
    imageSize: Optional[str] = "200px"
    active: bool = True


class PortfolioItem(ContentModel):
    title: Optional[str] = ""
    description: Optional[str] = ""
    videoUrl: Optional[str] = ""
    poster: Optional[str] = ""
    active: bool = True


class Testimonial(ContentModel):
    name: Optional[str] = ""
    position: Optional[str] = ""
    text: Optional[str] = ""
    active: bool = True


class Contact(ContentModel):
    whatsapp: Optional[str] = ""
    email: Optional[str] = ""
    instagram: Optional[str] = ""
    tiktok: Optional[str] = ""
    linkedin: Optional[str] = ""


class PageData(ContentModel):
    hero: Hero
    about: About
    portfolioPage: PortfolioPage
    portfolioIntro: Optional[str] = ""
    services: List[Service] = Field(default_factory=list)
    portfolio: List[PortfolioItem] = Field(default_factory=list)
    testimonials: List[Testimonial] = Field(default_factory=list)
    contact: Contact
    colors: Dict[str, str]
    typography: Dict[str, str]


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    message: str = "Login successful"


class VerifyResponse(BaseModel):
    valid: bool
    user: Dict[str, Any]


class ImageInfo(BaseModel):
    filename: str
    url: str
    size: int


class ImageList(BaseModel):
    images: List[ImageInfo]


class ImageRecord(ImageInfo):
    original_name: str
    width: int
    height: int
    uploaded_at: datetime


class UploadResponse(BaseModel):
    success: bool = True
    filename: str
    url: str
    size: int
    width: int
    height: int
    message: str = "Image uploaded successfully"


class DeleteResponse(BaseModel):
    success: bool = True
    message: str


class SaveResponse(BaseModel):
    success: bool = True
    message: str
    data: Dict[str, Any]


class HealthStatus(BaseModel):
    status: str = "OK"
    server: str = "running"

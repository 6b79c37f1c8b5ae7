from dataclasses import dataclass

from pydantic import BaseModel


@dataclass
class FileReq:
    filename: str
    destination: str
    extension: str
    content: bytes
    content_type: str = "application/octet-stream"


class FileRes(BaseModel):
    filename: str
    url: str


class DeleteFileReq(BaseModel):
    destination: str

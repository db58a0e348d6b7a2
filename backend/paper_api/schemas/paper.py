from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PaperMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    doi: str
    title: str
    authors: str
    published_date: str | None = Field(default=None, alias="publishedDate")
    journal: str | None = None
    abstract: str | None = None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class PageText(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page_number: int = Field(alias="pageNumber")
    text: str


class PageSequence(BaseModel):
    pages: list[PageText]


class ExtractedText(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    num_pages: int = Field(alias="numPages")
    title: str | None = None
    author: str | None = None

    def to_payload(self) -> dict:
        # Absent title/author are left out of the body rather than sent as null.
        return self.model_dump(by_alias=True, exclude_none=True)


class StructuredContent(ExtractedText):
    structured_content: PageSequence = Field(alias="structuredContent")

    @classmethod
    def single_page(cls, flat: ExtractedText) -> "StructuredContent":
        return cls(
            text=flat.text,
            num_pages=flat.num_pages,
            title=flat.title,
            author=flat.author,
            structured_content=PageSequence(pages=[PageText(page_number=1, text=flat.text)]),
        )

    @property
    def pages(self) -> list[PageText]:
        return self.structured_content.pages

"""Configuration for the graph extraction step.

Reads values from environment variables or a .env file (shared with the
rest of the pipeline). Only parameters used by the graph builders are
included.
"""

from __future__ import annotations

from dotenv import load_dotenv
from pydantic_settings import BaseSettings
from pydantic import Field

load_dotenv(override=True)


class Settings(BaseSettings):
    """Runtime knobs for graph extraction.

    Fields
    ------
    graphs
        Names of the graphs to build (see ``src.graphs.builders.BUILDERS``).
    pagerank_alpha
        Damping factor for PageRank (probability of following citation links).
    """

    graphs: list[str] = Field(
        [
            "authorship",
            "article_citation",
            "author_citation",
            "article_coauthorship",
            "author_coauthorship",
            "article_cociting",
            "article_cocited",
        ],
        env="GRAPHS",
    )
    pagerank_alpha: float = Field(0.85, env="PAGERANK_ALPHA")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()

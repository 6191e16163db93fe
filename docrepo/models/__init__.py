"""ORM 모델 패키지.

ORM model package — import all models so they register with Base.metadata.
"""

from docrepo.models.document import DocumentRecord  # noqa: F401

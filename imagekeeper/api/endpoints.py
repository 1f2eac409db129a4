from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from loguru import logger

from imagekeeper.api.auth import verify_credentials
from imagekeeper.api.schemas import CollectionSummary, ImageEdit, UploadResult
from imagekeeper.domain.collection import Collection, CollectionPatch, NewCollection
from imagekeeper.domain.image import Image, ImagePatch, NewImage
from imagekeeper.errors import UnsupportedMediaError
from imagekeeper.repository import Repository
from imagekeeper.upload import build_image_payload


def reconcile_memberships(repository: Repository, image: Image, wanted: List[str]) -> None:
    """Link and unlink an image so that its collections match ``wanted``."""
    for collection_id in wanted:
        if collection_id not in image.collections:
            if not repository.add_image_to_collection(image.id, collection_id):
                logger.warning(f"Skipping unknown collection {collection_id} for image {image.id}")
    for collection_id in image.collections:
        if collection_id not in wanted:
            repository.remove_image_from_collection(image.id, collection_id)


def summarize_collection(
    collection: Collection, images_by_id: dict[str, Image]
) -> CollectionSummary:
    members = [images_by_id[image_id] for image_id in collection.images if image_id in images_by_id]
    return CollectionSummary(
        **collection.model_dump(),
        image_count=len(collection.images),
        cover_url=members[0].url if members else None,
    )


def _get_image_or_404(repository: Repository, image_id: str) -> Image:
    image = repository.get_image(image_id)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return image


def _get_collection_or_404(repository: Repository, collection_id: str) -> Collection:
    collection = repository.get_collection(collection_id)
    if collection is None:
        raise HTTPException(status_code=404, detail="Collection not found")
    return collection


def _create_upload_endpoint(repository: Repository):
    """Create the upload endpoint handler."""

    async def upload_images(
        files: List[UploadFile] = File(...),  # noqa: B008
    ) -> UploadResult:
        created = []
        skipped = []
        for upload in files:
            filename = upload.filename or ""
            content = await upload.read()
            try:
                payload = build_image_payload(filename, content, upload.content_type)
            except UnsupportedMediaError:
                skipped.append(filename)
                continue
            created.append(repository.add_image(payload))

        logger.info(f"Uploaded {len(created)} images, skipped {len(skipped)} files")
        return UploadResult(images=created, skipped=skipped)

    return upload_images


def get_images_router(*, repository: Repository) -> APIRouter:
    router = APIRouter(prefix="/api/images", dependencies=[Depends(verify_credentials)])

    @router.get("", response_model=List[Image])
    async def list_images(q: str = "", sort: Optional[str] = None):
        images = repository.search_images(q)
        if sort:
            images = repository.sort_images(images, sort)
        return images

    router.post("", response_model=UploadResult, status_code=status.HTTP_201_CREATED)(
        _create_upload_endpoint(repository)
    )

    @router.post("/url", response_model=Image, status_code=status.HTTP_201_CREATED)
    async def add_image_by_url(data: NewImage):
        return repository.add_image(data)

    @router.get("/{image_id}", response_model=Image)
    async def get_image(image_id: str):
        return _get_image_or_404(repository, image_id)

    @router.patch("/{image_id}", response_model=Image)
    async def edit_image(image_id: str, edit: ImageEdit):
        image = _get_image_or_404(repository, image_id)
        patch = ImagePatch(**edit.model_dump(exclude_unset=True, exclude={"collections"}))
        repository.update_image(image_id, patch)
        if edit.collections is not None:
            reconcile_memberships(repository, image, edit.collections)
        return _get_image_or_404(repository, image_id)

    @router.delete("/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_image(image_id: str):
        if not repository.delete_image(image_id):
            raise HTTPException(status_code=404, detail="Image not found")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


def get_collections_router(*, repository: Repository) -> APIRouter:
    router = APIRouter(prefix="/api/collections", dependencies=[Depends(verify_credentials)])

    @router.get("", response_model=List[CollectionSummary])
    async def list_collections():
        images_by_id = {image.id: image for image in repository.list_images()}
        return [
            summarize_collection(collection, images_by_id)
            for collection in repository.list_collections()
        ]

    @router.post("", response_model=Collection, status_code=status.HTTP_201_CREATED)
    async def create_collection(data: NewCollection):
        return repository.add_collection(data)

    @router.get("/{collection_id}", response_model=Collection)
    async def get_collection(collection_id: str):
        return _get_collection_or_404(repository, collection_id)

    @router.patch("/{collection_id}", response_model=Collection)
    async def edit_collection(collection_id: str, patch: CollectionPatch):
        if not repository.update_collection(collection_id, patch):
            raise HTTPException(status_code=404, detail="Collection not found")
        return _get_collection_or_404(repository, collection_id)

    @router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_collection(collection_id: str):
        if not repository.delete_collection(collection_id):
            raise HTTPException(status_code=404, detail="Collection not found")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.get("/{collection_id}/images", response_model=List[Image])
    async def get_collection_images(collection_id: str):
        _get_collection_or_404(repository, collection_id)
        return repository.get_images_in_collection(collection_id)

    @router.put("/{collection_id}/images/{image_id}", response_model=Collection)
    async def link_image(collection_id: str, image_id: str):
        if not repository.add_image_to_collection(image_id, collection_id):
            raise HTTPException(status_code=404, detail="Image or collection not found")
        return _get_collection_or_404(repository, collection_id)

    @router.delete("/{collection_id}/images/{image_id}", response_model=Collection)
    async def unlink_image(collection_id: str, image_id: str):
        if not repository.remove_image_from_collection(image_id, collection_id):
            raise HTTPException(status_code=404, detail="Collection not found")
        return _get_collection_or_404(repository, collection_id)

    return router


def get_endpoints_router(*, repository: Repository) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    async def health_check():
        return {"status": "healthy"}

    router.include_router(get_images_router(repository=repository))
    router.include_router(get_collections_router(repository=repository))

    return router

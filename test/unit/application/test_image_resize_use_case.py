from __future__ import annotations

import pytest

from app.application.use_cases.image_resize import ResizeImageUseCase
from app.core.exceptions import (
    CacheCheckError,
    DecodeError,
    DownloadStatusError,
    NotFoundError,
    StorageUploadError,
)
from app.core.pyd_schemas import ResizeRequest
from app.infrastructure.adapters.storage_local_fs import LocalFSStorageBackend

CDN_BASE_URL = "https://cdn.example.com/image-cache"


def _request(**overrides) -> ResizeRequest:
    fields = {"source_url": "https://example.com/cat.png", "target_width": 300}
    fields.update(overrides)
    return ResizeRequest(**fields)


@pytest.mark.asyncio
async def test_miss_downloads_transforms_and_uploads(fake_adapters):
    use_case = ResizeImageUseCase(fake_adapters)
    request = _request()

    url = await use_case.resize(request)

    key = fake_adapters.key_deriver.derive(request)
    assert url == f"{CDN_BASE_URL}/{key}"
    fake_adapters.downloader.download.assert_awaited_once_with(request.source_url)
    fake_adapters.transformer.transform.assert_awaited_once()
    fake_adapters.storage.upload.assert_awaited_once()
    assert fake_adapters.storage.upload.await_args.args[0] == key
    assert fake_adapters.storage.upload.await_args.args[1] == "image/jpeg"


@pytest.mark.asyncio
async def test_hit_never_downloads_or_uploads(fake_adapters):
    use_case = ResizeImageUseCase(fake_adapters)
    request = _request()
    key = fake_adapters.key_deriver.derive(request)
    await fake_adapters.storage.upload(key, "image/jpeg", b"cached")
    fake_adapters.storage.upload.reset_mock()

    url = await use_case.resize(request)

    assert url == f"{CDN_BASE_URL}/{key}"
    fake_adapters.downloader.download.assert_not_awaited()
    fake_adapters.transformer.transform.assert_not_awaited()
    fake_adapters.storage.upload.assert_not_awaited()


@pytest.mark.asyncio
async def test_second_identical_request_is_a_hit(fake_adapters):
    use_case = ResizeImageUseCase(fake_adapters)

    first = await use_case.resize(_request())
    second = await use_case.resize(_request())

    assert first == second
    assert fake_adapters.downloader.download.await_count == 1
    assert fake_adapters.storage.upload.await_count == 1


@pytest.mark.asyncio
async def test_cache_check_failure_still_succeeds(fake_adapters):
    fake_adapters.storage.exists.side_effect = CacheCheckError("unreachable")
    use_case = ResizeImageUseCase(fake_adapters)

    url = await use_case.resize(_request())

    assert url.startswith(CDN_BASE_URL)
    fake_adapters.downloader.download.assert_awaited_once()
    fake_adapters.storage.upload.assert_awaited_once()


@pytest.mark.asyncio
async def test_download_error_propagates_without_transform(fake_adapters):
    fake_adapters.downloader.download.side_effect = DownloadStatusError(
        "status 404", url="https://example.com/cat.png", status=404
    )
    use_case = ResizeImageUseCase(fake_adapters)

    with pytest.raises(DownloadStatusError) as exc_info:
        await use_case.resize(_request())

    assert exc_info.value.status == 404
    fake_adapters.transformer.transform.assert_not_awaited()
    fake_adapters.storage.upload.assert_not_awaited()


@pytest.mark.asyncio
async def test_transform_error_propagates_without_upload(fake_adapters):
    fake_adapters.transformer.transform.side_effect = DecodeError("not an image")
    use_case = ResizeImageUseCase(fake_adapters)

    with pytest.raises(DecodeError):
        await use_case.resize(_request())
    fake_adapters.storage.upload.assert_not_awaited()


@pytest.mark.asyncio
async def test_upload_error_propagates(fake_adapters):
    fake_adapters.storage.upload.side_effect = StorageUploadError("denied", key="k")
    use_case = ResizeImageUseCase(fake_adapters)

    with pytest.raises(StorageUploadError):
        await use_case.resize(_request())


@pytest.mark.asyncio
async def test_retrieve_returns_stored_artifact(fake_adapters):
    await fake_adapters.storage.upload("abc.png", "image/png", b"png-bytes")
    use_case = ResizeImageUseCase(fake_adapters)

    artifact = await use_case.retrieve("abc.png")

    assert artifact.data == b"png-bytes"
    assert artifact.content_type == "image/png"


@pytest.mark.asyncio
async def test_retrieve_unknown_key_raises_not_found(fake_adapters):
    use_case = ResizeImageUseCase(fake_adapters)

    with pytest.raises(NotFoundError) as exc_info:
        await use_case.retrieve("missing.jpg")
    assert exc_info.value.key == "missing.jpg"
    fake_adapters.storage.fetch.assert_not_awaited()


@pytest.mark.asyncio
async def test_retrieve_falls_through_to_fetch_when_check_fails(fake_adapters):
    await fake_adapters.storage.upload("abc.png", "image/png", b"png-bytes")
    fake_adapters.storage.exists.side_effect = CacheCheckError("flaky")
    use_case = ResizeImageUseCase(fake_adapters)

    artifact = await use_case.retrieve("abc.png")
    assert artifact.data == b"png-bytes"


@pytest.mark.asyncio
@pytest.mark.parametrize("key", ["abc.jpg.content-type", "a" * 300 + ".jpg"])
async def test_retrieve_on_local_fs_reports_internal_or_overlong_names_as_missing(
    fake_adapters, tmp_path, key
):
    fake_adapters.storage = LocalFSStorageBackend(tmp_path)
    await fake_adapters.storage.upload("abc.jpg", "image/jpeg", b"jpeg")
    use_case = ResizeImageUseCase(fake_adapters)

    with pytest.raises(NotFoundError):
        await use_case.retrieve(key)

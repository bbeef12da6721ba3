"""
Tests para el bucket de imágenes /storage/v1
"""
from fastapi import status

from petmanager.config import get_settings

from conftest import signup_and_login

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _upload(client, headers, path, data=PNG, content_type="image/png", **extra):
    return client.post(
        f"/storage/v1/object/pet-images/{path}",
        content=data,
        headers={**headers, "Content-Type": content_type, **extra},
    )


def _user_id(client, headers):
    return client.get("/auth/user", headers=headers).json()["id"]


def test_upload_and_public_url(client, auth_headers):
    uid = _user_id(client, auth_headers)
    path = f"{uid}/1700000000000.png"

    response = _upload(client, auth_headers, path, **{"Cache-Control": "3600", "x-upsert": "false"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["path"] == path
    assert (get_settings().bucket_dir / uid / "1700000000000.png").is_file()

    public = client.get(f"/storage/v1/object/public/pet-images/{path}")
    assert public.status_code == status.HTTP_200_OK
    assert public.content == PNG
    assert public.headers["cache-control"] == "max-age=3600"


def test_upload_does_not_overwrite(client, auth_headers):
    uid = _user_id(client, auth_headers)
    path = f"{uid}/1700000000001.png"
    assert _upload(client, auth_headers, path).status_code == status.HTTP_200_OK
    assert _upload(client, auth_headers, path).status_code == status.HTTP_409_CONFLICT


def test_upload_rejects_foreign_prefix_and_non_images(client, auth_headers):
    uid = _user_id(client, auth_headers)
    assert _upload(client, auth_headers, "someone-else/1.png").status_code == status.HTTP_403_FORBIDDEN
    assert _upload(client, auth_headers, f"{uid}/notes.txt", b"hello", "text/plain").status_code == 415


def test_upload_rejects_large_files(client, auth_headers):
    uid = _user_id(client, auth_headers)
    big = b"\x00" * (5 * 1024 * 1024 + 1)
    assert _upload(client, auth_headers, f"{uid}/big.png", big).status_code == 413


def test_upload_streamed_without_length_is_cut_off(client, auth_headers):
    uid = _user_id(client, auth_headers)
    chunk = b"\x00" * (1024 * 1024)
    response = _upload(client, auth_headers, f"{uid}/streamed.png", iter([chunk] * 6))
    assert response.status_code == 413

    folder = get_settings().bucket_dir / uid
    assert not (folder / "streamed.png").exists()
    assert not (folder / "streamed.png.part").exists()


def test_upload_empty_body(client, auth_headers):
    uid = _user_id(client, auth_headers)
    assert _upload(client, auth_headers, f"{uid}/empty.png", b"").status_code == 400
    assert not (get_settings().bucket_dir / uid / "empty.png").exists()


def test_upload_requires_auth(client):
    assert _upload(client, {}, "anyone/1.png").status_code == status.HTTP_401_UNAUTHORIZED


def test_remove_objects(client, auth_headers):
    uid = _user_id(client, auth_headers)
    path = f"{uid}/1700000000002.png"
    _upload(client, auth_headers, path)

    response = client.request(
        "DELETE", "/storage/v1/object/pet-images", json={"prefixes": [path]}, headers=auth_headers
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == [{"bucket": "pet-images", "name": path}]
    assert client.get(f"/storage/v1/object/public/pet-images/{path}").status_code == 404

    # borrar algo que ya no existe no es un error
    again = client.request(
        "DELETE", "/storage/v1/object/pet-images", json={"prefixes": [path]}, headers=auth_headers
    )
    assert again.status_code == status.HTTP_200_OK
    assert again.json() == []


def test_remove_skips_foreign_objects(client, auth_headers):
    other = signup_and_login(client, "neighbour@example.com", "password123")
    other_uid = _user_id(client, other)
    foreign = f"{other_uid}/1700000000003.png"
    assert _upload(client, other, foreign).status_code == status.HTTP_200_OK

    response = client.request(
        "DELETE", "/storage/v1/object/pet-images",
        json={"prefixes": [foreign, "someone-else/1.png"]}, headers=auth_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == []
    assert client.get(f"/storage/v1/object/public/pet-images/{foreign}").status_code == 200


def test_unknown_bucket(client, auth_headers):
    response = client.get("/storage/v1/object/public/other-bucket/x.png")
    assert response.status_code == status.HTTP_404_NOT_FOUND

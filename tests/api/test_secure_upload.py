def upload(client, headers, **overrides):
    body = {"fileName": "Report.PDF", "contentType": "application/pdf", "bucket": "private", "folder": "member-1"}
    body.update(overrides)
    return client.post("/secure-upload", json=body, headers=headers)


def test_private_upload_into_own_folder(client, store, storage, member_headers):
    response = upload(client, member_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["path"] == "member-1/gen-1.pdf"
    assert body["signedUrl"].startswith("https://storage.test/private/member-1/gen-1.pdf")
    assert "publicUrl" not in body
    assert storage.signed == [("private", "member-1/gen-1.pdf")]

    audit = store.rows("upload_audit")[0]
    assert audit["action"] == "secure_upload"
    assert audit["outcome"] == "success"
    assert audit["file_path"] == "member-1/gen-1.pdf"


def test_private_upload_into_other_folder_is_forbidden(client, store, storage, member_headers):
    response = upload(client, member_headers, folder="admin-1")

    assert response.status_code == 403
    assert response.json()["error"] == "Invalid folder: must match your user ID"
    assert storage.signed == []
    assert store.rows("upload_audit")[0]["outcome"] == "failure"


def test_public_upload_returns_public_url(client, member_headers):
    response = upload(client, member_headers, bucket="public", folder="board-members", contentType="image/png",
                      fileName="headshot.png")

    assert response.status_code == 200
    assert response.json()["publicUrl"] == "https://storage.test/object/public/public/board-members/gen-1.png"


def test_disallowed_content_type(client, member_headers):
    response = upload(client, member_headers, contentType="application/x-msdownload", fileName="run.exe")

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "contentType"


def test_folder_traversal_rejected(client, member_headers):
    response = upload(client, member_headers, bucket="public", folder="../secrets")

    assert response.status_code == 400


def test_upload_requires_sign_in(client, store):
    response = upload(client, {})

    assert response.status_code == 401
    assert store.rows("upload_audit") == []

"""
Tests for apartment endpoints and document extraction

Tests cover:
- Property ownership checks on create and on property moves
- Listing by property and search
- Document registration with Textract extraction, including failures
- Document keys and image URLs confined to the apartment's own prefix
- The /search endpoint
"""
from estate_crm.services.extraction_service import (
    EXTRACTED_NOTE,
    EXTRACTION_FAILED_NOTE,
    parse_apartment_data,
)
from tests.conftest import ApartmentFactory, PropertyFactory, auth_headers

BUCKET_URL = "https://test-bucket.s3.eu-central-1.amazonaws.com"


class TestParseApartmentData:

    def test_labelled_values(self):
        data = parse_apartment_data("Ap. 15\n2 camere\n54 mp\n95000 lei")
        assert data == {
            "apartmentNumber": "15",
            "rooms": 2,
            "area": 54.0,
            "price": 95000.0,
            "notes": EXTRACTED_NOTE,
        }

    def test_english_units_and_thousands_separator(self):
        data = parse_apartment_data("Unit c301 - 4 rooms, 110.5 sqm, 250,000 €")
        assert data["apartmentNumber"] == "C301"
        assert data["rooms"] == 4
        assert data["area"] == 110.5
        assert data["price"] == 250000.0

    def test_no_text(self):
        for text in (None, "", "fără cifre"):
            data = parse_apartment_data(text)
            assert data["rooms"] is None
            assert data["price"] is None


class TestApartmentCrud:

    async def test_create_requires_own_property(self, client, db_session, company, other_company, power_user):
        own = await PropertyFactory.create(db_session, company)
        foreign = await PropertyFactory.create(db_session, other_company)
        headers = auth_headers(power_user)

        ok = await client.post(
            "/apartments", headers=headers,
            json={"propertyId": own.id, "apartmentNumber": "B3", "rooms": 3, "price": 120000},
        )
        assert ok.status_code == 201
        assert ok.json()["companyId"] == company.id

        missing = await client.post(
            "/apartments", headers=headers, json={"propertyId": "nope", "apartmentNumber": "B4"}
        )
        assert missing.status_code == 404
        assert missing.json()["message"] == "Property not found"

        denied = await client.post(
            "/apartments", headers=headers, json={"propertyId": foreign.id, "apartmentNumber": "B5"}
        )
        assert denied.status_code == 403

    async def test_plain_user_reads_but_cannot_write(self, client, db_session, company, plain_user):
        prop = await PropertyFactory.create(db_session, company)
        apartment = await ApartmentFactory.create(db_session, company, prop)
        headers = auth_headers(plain_user)
        assert (await client.get(f"/apartments/{apartment.id}", headers=headers)).status_code == 200
        response = await client.patch(f"/apartments/{apartment.id}", headers=headers, json={"rooms": 3})
        assert response.status_code == 403

    async def test_move_to_foreign_property_refused(self, client, db_session, company, other_company, power_user):
        prop = await PropertyFactory.create(db_session, company)
        other = await PropertyFactory.create(db_session, company, name="Bloc 2")
        foreign = await PropertyFactory.create(db_session, other_company)
        apartment = await ApartmentFactory.create(db_session, company, prop)
        headers = auth_headers(power_user)

        denied = await client.patch(
            f"/apartments/{apartment.id}", headers=headers, json={"propertyId": foreign.id}
        )
        assert denied.status_code == 403

        moved = await client.patch(
            f"/apartments/{apartment.id}", headers=headers, json={"propertyId": other.id, "price": "99000"}
        )
        assert moved.status_code == 200
        assert moved.json()["propertyId"] == other.id
        assert moved.json()["price"] == 99000.0

    async def test_list_by_property_and_search(self, client, db_session, company, plain_user):
        first = await PropertyFactory.create(db_session, company)
        second = await PropertyFactory.create(db_session, company, name="Bloc 2")
        await ApartmentFactory.create(db_session, company, first, apartment_number="P2")
        await ApartmentFactory.create(db_session, company, first, apartment_number="P1")
        await ApartmentFactory.create(db_session, company, second, apartment_number="R9")
        headers = auth_headers(plain_user)

        page = await client.get("/apartments", headers=headers, params={"propertyId": first.id})
        assert sorted(a["apartmentNumber"] for a in page.json()["items"]) == ["P1", "P2"]

        found = await client.get("/apartments", headers=headers, params={"search": "p"})
        assert sorted(a["apartmentNumber"] for a in found.json()) == ["P1", "P2"]

    async def test_delete(self, client, db_session, company, power_user):
        prop = await PropertyFactory.create(db_session, company)
        apartment = await ApartmentFactory.create(db_session, company, prop)
        headers = auth_headers(power_user)
        assert (await client.delete(f"/apartments/{apartment.id}", headers=headers)).status_code == 200
        assert (await client.get(f"/apartments/{apartment.id}", headers=headers)).status_code == 404


class TestDocuments:

    async def test_document_extraction(self, client, db_session, company, power_user, fake_s3, fake_textract):
        prop = await PropertyFactory.create(db_session, company)
        apartment = await ApartmentFactory.create(db_session, company, prop)
        headers = auth_headers(power_user)

        signed = await client.post(
            f"/apartments/{apartment.id}/uploads", headers=headers, json={"fileName": "fisa.png", "kind": "documents"}
        )
        key = signed.json()["s3Key"]
        assert key.startswith(f"apartments/{apartment.id}/documents/")

        response = await client.post(
            f"/apartments/{apartment.id}/documents",
            headers=headers,
            json={"name": "fisa.png", "type": "image/png", "size": 512, "s3Key": key},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["extractedData"]["apartmentNumber"] == "B7"
        assert body["extractedData"]["rooms"] == 3
        assert body["extractedData"]["area"] == 82.5
        assert body["extractedData"]["price"] == 120000.0
        assert body["document"]["s3Key"] == key
        assert body["apartment"]["documents"][0]["extractedData"] == body["extractedData"]
        # Extraction only suggests values.
        assert body["apartment"]["apartmentNumber"] == "A12"
        assert fake_textract.calls == [{"S3Object": {"Bucket": "test-bucket", "Name": key}}]

        removed = await client.delete(
            f"/apartments/{apartment.id}/documents", headers=headers, params={"s3Key": key}
        )
        assert removed.json()["documents"] == []
        assert fake_s3.deleted == [key]

        again = await client.delete(
            f"/apartments/{apartment.id}/documents", headers=headers, params={"s3Key": key}
        )
        assert again.status_code == 404

    async def test_extraction_failure_keeps_document(self, client, db_session, company, power_user, fake_textract):
        fake_textract.error = True
        prop = await PropertyFactory.create(db_session, company)
        apartment = await ApartmentFactory.create(db_session, company, prop)

        response = await client.post(
            f"/apartments/{apartment.id}/documents",
            headers=auth_headers(power_user),
            json={"name": "scan.pdf", "s3Key": f"apartments/{apartment.id}/documents/scan.pdf"},
        )
        assert response.status_code == 201
        assert response.json()["extractedData"]["notes"] == EXTRACTION_FAILED_NOTE
        assert len(response.json()["apartment"]["documents"]) == 1

    async def test_foreign_document_key_rejected_before_extraction(
        self, client, db_session, company, power_user, fake_textract
    ):
        prop = await PropertyFactory.create(db_session, company)
        apartment = await ApartmentFactory.create(db_session, company, prop)
        response = await client.post(
            f"/apartments/{apartment.id}/documents",
            headers=auth_headers(power_user),
            json={"name": "scan.pdf", "s3Key": "apartments/another-apartment/documents/scan.pdf"},
        )
        assert response.status_code == 403
        assert response.json()["message"] == "File access denied"
        assert fake_textract.calls == []

    async def test_foreign_document_not_deleted_from_storage(
        self, client, db_session, company, power_user, fake_s3
    ):
        prop = await PropertyFactory.create(db_session, company)
        apartment = await ApartmentFactory.create(
            db_session, company, prop, documents=[{"name": "x.pdf", "s3Key": "properties/p-9/files/x.pdf"}]
        )
        response = await client.delete(
            f"/apartments/{apartment.id}/documents",
            headers=auth_headers(power_user),
            params={"s3Key": "properties/p-9/files/x.pdf"},
        )
        assert response.json()["documents"] == []
        assert fake_s3.deleted == []

    async def test_bucket_image_under_other_prefix_rejected(self, client, db_session, company, power_user):
        prop = await PropertyFactory.create(db_session, company)
        apartment = await ApartmentFactory.create(db_session, company, prop)
        response = await client.post(
            f"/apartments/{apartment.id}/images",
            headers=auth_headers(power_user),
            json={"imageUrl": f"{BUCKET_URL}/properties/{prop.id}/images/a.jpg"},
        )
        assert response.status_code == 403


class TestSearchEndpoint:

    async def test_search(self, client, db_session, company, other_company, plain_user):
        await PropertyFactory.create(db_session, company, name="Vila Brașov")
        await PropertyFactory.create(db_session, company, name="Turnul", address="Iași")
        await PropertyFactory.create(db_session, other_company, name="Brașov Sud")
        response = await client.get("/search", headers=auth_headers(plain_user), params={"query": " BRASOV "})
        body = response.json()
        assert body["query"] == "BRASOV"
        assert body["total"] == 1
        assert body["properties"][0]["name"] == "Vila Brașov"

    async def test_empty_query(self, client, plain_user):
        response = await client.get("/search", headers=auth_headers(plain_user), params={"query": "  "})
        assert response.status_code == 400
        assert response.json()["message"] == "Search query is required"

    async def test_requires_token(self, client):
        response = await client.get("/search", params={"query": "x"})
        assert response.status_code == 401

    async def test_results_sorted_by_normalized_name(self, client, db_session, company, plain_user):
        await PropertyFactory.create(db_session, company, name="Vila Brașov")
        await PropertyFactory.create(db_session, company, name="Ștrand Brasov")
        await PropertyFactory.create(db_session, company, name="Ansamblu Brașov")
        response = await client.get("/search", headers=auth_headers(plain_user), params={"query": "brasov"})
        names = [prop["name"] for prop in response.json()["properties"]]
        assert names == ["Ansamblu Brașov", "Ștrand Brasov", "Vila Brașov"]

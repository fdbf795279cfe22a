"""
Tests for the editor controller and the HTTP surface.

Run locally:
    pytest tests/ -v

Or with a running server:
    BASE_URL=http://localhost:8000 pytest tests/ -v
"""

import json
import math
import os
import sys
from datetime import date

import pytest

# Allow imports from parent directory
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))


SAMPLE_DRAFT = {
    "header": {
        "invoice_number": "INV-ZX90/BNN/02/2025",
        "issue_date": "2025-02-10",
        "due_date": "2025-02-17",
        "customer_name": "Budi Santoso",
        "customer_phone": "0813-1111-2222",
        "notes": "Transfer BCA\nAtau tunai",
    },
    "items": [
        {"description": "Sewa Innova", "quantity": 2, "unit_price": 100000, "days": 3},
    ],
    "tax": {"ppn_rate": 11, "pph_rate": 2},
}


# ── Editor controller ──────────────────────────────────────────────────────────

class TestNewDraft:
    def test_defaults(self):
        from editor import new_draft
        from settings import Settings
        settings = Settings(due_days=7, invoice_number_suffix="BNN")
        draft = new_draft(settings, today=date(2025, 3, 1))
        assert draft.header.issue_date == date(2025, 3, 1)
        assert draft.header.due_date == date(2025, 3, 8)
        assert draft.header.invoice_number.startswith("INV-")
        assert draft.header.invoice_number.endswith("/BNN/03/2025")
        assert draft.header.signature_location == "Banyuwangi"
        assert draft.header.notes == settings.default_notes
        assert len(draft.items) == 1
        assert draft.items[0].description == ""


class TestEditor:
    def make_editor(self):
        from editor import InvoiceEditor
        return InvoiceEditor()

    def test_starts_with_zero_totals(self):
        editor = self.make_editor()
        assert editor.totals.subtotal == 0
        assert editor.totals.total == 0

    def test_every_edit_recomputes(self):
        editor = self.make_editor()
        editor.update_item(0, "description", "Sewa Avanza")
        editor.update_item(0, "quantity", 2)
        editor.update_item(0, "unit_price", "100000")
        editor.update_item(0, "days", 3)
        assert editor.totals.subtotal == 600000

        editor.update_tax("ppn_rate", 11)
        editor.update_tax("pph_rate", 2)
        assert editor.totals.total == 678000

        editor.update_tax("policy", "withholding_first")
        assert editor.totals.total == 652680

    def test_bad_numbers_fall_back(self):
        editor = self.make_editor()
        editor.update_item(0, "unit_price", 5000)
        editor.update_item(0, "quantity", "dua")
        assert editor.draft.items[0].quantity == 1
        assert editor.totals.subtotal == 5000

    def test_add_and_remove_items(self):
        editor = self.make_editor()
        editor.update_item(0, "unit_price", 1000)
        editor.add_item()
        editor.update_item(1, "unit_price", 2000)
        assert editor.totals.subtotal == 3000

        assert editor.remove_item(0) is True
        assert editor.totals.subtotal == 2000
        assert editor.remove_item(0) is False
        assert len(editor.draft.items) == 1

    def test_out_of_range_index(self):
        editor = self.make_editor()
        with pytest.raises(IndexError, match="No line item at position 3"):
            editor.update_item(3, "description", "Sewa")
        with pytest.raises(IndexError, match="No line item at position -1"):
            editor.remove_item(-1)
        editor.add_item()
        with pytest.raises(IndexError, match="No line item at position 2"):
            editor.remove_item(2)
        assert len(editor.draft.items) == 2

    def test_unknown_field(self):
        editor = self.make_editor()
        with pytest.raises(KeyError):
            editor.update_header("colour", "red")
        with pytest.raises(KeyError):
            editor.update_item(0, "colour", "red")
        with pytest.raises(KeyError):
            editor.update_tax("colour", "red")

    def test_update_header_parses_dates(self):
        editor = self.make_editor()
        editor.update_header("issue_date", "2025-05-20")
        assert editor.draft.header.issue_date == date(2025, 5, 20)

    def test_submit_blocked_without_customer(self):
        editor = self.make_editor()
        editor.update_item(0, "description", "Sewa")
        with pytest.raises(ValueError):
            editor.submit()
        assert editor.error == "Nama pelanggan harus diisi"

    def test_submit_blocked_without_description(self):
        editor = self.make_editor()
        editor.update_header("customer_name", "Budi")
        with pytest.raises(ValueError):
            editor.submit()
        assert editor.error == "Semua item harus memiliki deskripsi"

    def test_submit_renders_and_clears_error(self):
        editor = self.make_editor()
        editor.update_item(0, "description", "Sewa")
        with pytest.raises(ValueError):
            editor.submit()
        editor.update_header("customer_name", "Budi")
        html = editor.submit(layout="letterhead")
        assert editor.error == ""
        assert "Budi" in html
        assert "size: A4" in html

    def test_print_reports_blocked_surface(self, tmp_path):
        from editor import InvoiceEditor
        from printing import PrintSurfaceUnavailable
        from settings import Settings
        editor = InvoiceEditor(settings=Settings(print_output_dir=str(tmp_path)))
        editor.update_header("customer_name", "Budi")
        editor.update_item(0, "description", "Sewa")
        before = editor.draft.model_copy(deep=True)

        with pytest.raises(PrintSurfaceUnavailable):
            editor.print(opener=lambda uri: False)
        assert editor.error.startswith("Pop-up diblokir")
        assert editor.draft == before
        assert list(tmp_path.iterdir()) == []

    def test_print_opens_document(self, tmp_path):
        from editor import InvoiceEditor
        from settings import Settings
        editor = InvoiceEditor(settings=Settings(print_output_dir=str(tmp_path)))
        editor.update_header("customer_name", "Budi")
        editor.update_item(0, "description", "Sewa")
        path = editor.print(opener=lambda uri: True)
        assert path.parent == tmp_path
        assert "Budi" in path.read_text(encoding="utf-8")


# ── HTTP surface ───────────────────────────────────────────────────────────────

@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from main import app
    return TestClient(app)


class TestHTTP:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_root_lists_endpoints(self, client):
        data = client.get("/").json()
        assert "totals" in data["endpoints"]

    def test_new_invoice(self, client):
        data = client.get("/invoices/new").json()
        assert data["header"]["invoice_number"].startswith("INV-")
        assert len(data["items"]) == 1
        assert data["tax"]["policy"] == "down_payment_first"

    def test_totals(self, client):
        resp = client.post("/totals", json={"items": SAMPLE_DRAFT["items"], "tax": SAMPLE_DRAFT["tax"]})
        assert resp.status_code == 200
        data = resp.json()
        assert data["subtotal"] == 600000
        assert data["ppn_amount"] == 66000
        assert data["pph_amount"] == 12000
        assert data["total"] == 678000
        assert data["line_totals"] == [600000]

    def test_totals_withholding_first(self, client):
        tax = dict(SAMPLE_DRAFT["tax"], policy="withholding_first")
        data = client.post("/totals", json={"items": SAMPLE_DRAFT["items"], "tax": tax}).json()
        assert data["taxable_base"] == 588000
        assert data["total"] == 652680

    def test_totals_coerces_malformed_numbers(self, client):
        items = [{"description": "x", "quantity": "abc", "unit_price": "", "days": None}]
        resp = client.post("/totals", json={"items": items, "tax": {"ppn_rate": "sebelas"}})
        assert resp.status_code == 200
        assert resp.json()["total"] == 0

    def test_totals_huge_amounts_stay_finite(self, client):
        items = [{"description": "x", "quantity": 1e200, "unit_price": 1e200, "days": 1}]
        resp = client.post("/totals", json={"items": items, "tax": {"ppn_rate": 11, "pph_rate": 2}})
        assert resp.status_code == 200
        data = resp.json()
        for key in ("subtotal", "taxable_base", "ppn_amount", "pph_amount", "total"):
            assert data[key] is not None
            assert math.isfinite(data[key])
            assert data[key] >= 0
        assert data["line_totals"][0] is not None

    def test_render_huge_amounts(self, client):
        draft = json.loads(json.dumps(SAMPLE_DRAFT))
        draft["items"][0].update(quantity=1e200, unit_price=1e200)
        resp = client.post("/invoices/render", json=draft)
        assert resp.status_code == 200
        assert "Total:" in resp.text

    def test_render_html(self, client):
        resp = client.post("/invoices/render?layout=compact", json=SAMPLE_DRAFT)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "Budi Santoso" in resp.text
        assert "Rp 678.000" in resp.text
        assert "Transfer BCA<br>Atau tunai" in resp.text

    def test_render_letterhead(self, client):
        resp = client.post("/invoices/render?layout=letterhead", json=SAMPLE_DRAFT)
        assert resp.status_code == 200
        assert "size: A4" in resp.text

    def test_render_rejects_unknown_layout(self, client):
        resp = client.post("/invoices/render?layout=poster", json=SAMPLE_DRAFT)
        assert resp.status_code == 422

    def test_render_blocked_without_customer(self, client):
        draft = json.loads(json.dumps(SAMPLE_DRAFT))
        draft["header"]["customer_name"] = "  "
        resp = client.post("/invoices/render", json=draft)
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Nama pelanggan harus diisi"

    def test_print_unavailable(self, client, monkeypatch):
        import main
        from printing import PrintSurfaceUnavailable

        def blocked(html, **kwargs):
            raise PrintSurfaceUnavailable()

        monkeypatch.setattr(main, "send_to_print", blocked)
        resp = client.post("/invoices/print", json=SAMPLE_DRAFT)
        assert resp.status_code == 503
        assert resp.json()["detail"].startswith("Pop-up diblokir")

    def test_print_ok(self, client, monkeypatch, tmp_path):
        import main
        sent = []

        def fake_send(html, **kwargs):
            sent.append(html)
            return tmp_path / "invoice.html"

        monkeypatch.setattr(main, "send_to_print", fake_send)
        resp = client.post("/invoices/print?layout=compact", json=SAMPLE_DRAFT)
        assert resp.status_code == 200
        assert resp.json()["invoice_number"] == "INV-ZX90/BNN/02/2025"
        assert "window.print()" in sent[0]


# ── MCP tools ──────────────────────────────────────────────────────────────────

def mcp_tool(name):
    import mcp_server
    tool = getattr(mcp_server, name)
    return getattr(tool, "fn", tool)


class TestMCPTools:
    def test_render(self):
        result = mcp_tool("render_invoice_html")(SAMPLE_DRAFT, layout="letterhead")
        assert result["invoice_number"] == "INV-ZX90/BNN/02/2025"
        assert "size: A4" in result["html"]

    def test_render_unknown_layout_returns_error(self):
        result = mcp_tool("render_invoice_html")(SAMPLE_DRAFT, layout="poster")
        assert "html" not in result
        assert "not supported" in result["error"]

    def test_render_validation_error(self):
        draft = json.loads(json.dumps(SAMPLE_DRAFT))
        draft["header"]["customer_name"] = ""
        result = mcp_tool("render_invoice_html")(draft)
        assert result["error"] == "Nama pelanggan harus diisi"

    def test_totals(self):
        data = mcp_tool("calculate_invoice_totals")(SAMPLE_DRAFT["items"], SAMPLE_DRAFT["tax"])
        assert data["total"] == 678000


# ── Integration tests (requires running server)──────────────────────────────

BASE_URL = os.getenv("BASE_URL", "")


@pytest.mark.skipif(not BASE_URL, reason="Set BASE_URL env var to run integration tests")
class TestLiveServer:
    def test_health(self):
        import urllib.request
        with urllib.request.urlopen(f"{BASE_URL}/health") as resp:
            data = json.loads(resp.read())
        assert data["status"] == "ok"

    def test_render_sample_invoice(self):
        import urllib.request
        req = urllib.request.Request(
            f"{BASE_URL}/invoices/render",
            data=json.dumps(SAMPLE_DRAFT).encode(),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        with urllib.request.urlopen(req) as resp:
            html = resp.read().decode("utf-8")
        assert "INV-ZX90/BNN/02/2025" in html

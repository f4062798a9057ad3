"""Integration tests for the full scraping pipeline."""

import asyncio
import json

import httpx
import pytest

from finance_scraper.config.loader import ConfigLoader, PortalConfig, load_portal
from finance_scraper.core.errors import StructuralPreconditionError
from finance_scraper.core.http_client import PortalClient
from finance_scraper.orchestrator import FinanceScraper


LISTING_HTML = """
<table id="FundedTable">
  <thead><tr><th>ID</th></tr></thead>
  <tbody>
    <tr>
      <td>42*</td><td>Org A</td><td>Spring Mixer</td><td>20240301</td>
      <td>Hall 101</td><td>$500.00</td><td>20240310
      Mon</td>
      <td><a class="btn btn-info" href="/Home/ViewPostEvaluation/42">Post-Eval</a></td>
    </tr>
    <tr>
      <td>43</td><td>Org B</td><td>Game Night</td><td>20240315</td>
      <td>Library Walk</td><td></td><td>20240316</td>
      <td></td>
    </tr>
  </tbody>
</table>
"""

APPLICATION_HTML = """
<dl>
  <dt>Status</dt><dd>Awarded</dd>
  <dt>On Campus</dt><dd><input type="checkbox"></dd>
</dl>
<table><tbody>
  <tr><td>Food</td><td>Pizza</td><td>$1,234.00</td><td>$1,000.00</td><td></td><td></td></tr>
  <tr><td colspan="2">Total</td><td>$1,234.00</td><td>$1,000.00</td><td></td><td></td></tr>
</tbody></table>
<a href="/Home/DownloadFile?id=9">Quote.pdf</a>
"""

POST_EVALUATION_HTML = """
<div class="form-group">
  <label>Actual attendance</label>
  120
</div>
"""


def make_portal(**overrides) -> PortalConfig:
    data = {
        "base_url": "https://finance.example.edu",
        "requests_per_second": 1000.0,
    }
    data.update(overrides)
    return PortalConfig.from_dict(data)


def make_transport(pages: dict[str, str], requested: list) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.raw_path.decode()
        requested.append(path)
        if path in pages:
            return httpx.Response(200, text=pages[path])
        return httpx.Response(404, text="Not Found")

    return httpx.MockTransport(handler)


@pytest.fixture
def pages():
    return {
        "/Home/ListFunded?FinanceTerm=1031": LISTING_HTML,
        "/Home/ViewApplication/42": APPLICATION_HTML,
        "/Home/ViewApplication/43": APPLICATION_HTML,
        "/Home/ViewPostEvaluation/42": POST_EVALUATION_HTML,
    }


def make_scraper(pages, requested, tmp_path=None) -> FinanceScraper:
    portal = make_portal()
    client = PortalClient(portal, transport=make_transport(pages, requested))
    return FinanceScraper(
        portal=portal,
        output_dir=str(tmp_path) if tmp_path else "output",
        client=client,
    )


class TestConfigLoader:
    """Tests for configuration loading."""

    def test_load_packaged_portal(self, monkeypatch):
        """Test loading the packaged portal.yml file."""
        monkeypatch.delenv("FINANCE_BASE_URL", raising=False)
        portal = ConfigLoader().load_portal()

        assert portal.base_url == "https://finance.ucsd.edu"
        assert portal.download_prefix == "/Home/DownloadFile"
        assert portal.max_concurrency == 5

    def test_env_override(self, monkeypatch):
        """Test base URL comes from the environment when set."""
        monkeypatch.setenv("FINANCE_BASE_URL", "https://staging.example.edu/")
        portal = load_portal()

        assert portal.base_url == "https://staging.example.edu"

    def test_custom_file(self, tmp_path):
        """Test loading a portal file from another directory."""
        path = tmp_path / "portal.yml"
        path.write_text(
            "portal:\n"
            "  base_url: https://finance.example.edu\n"
            "  max_concurrency: 2\n",
            encoding="utf-8",
        )
        portal = load_portal(str(path))

        assert portal.max_concurrency == 2
        assert portal.listing_path == "/Home/ListFunded?FinanceTerm={term_id}"

    def test_missing_file(self, tmp_path):
        """Test missing config file raises."""
        with pytest.raises(FileNotFoundError):
            load_portal(str(tmp_path / "nope.yml"))

    def test_missing_base_url(self):
        """Test base_url is required."""
        with pytest.raises(ValueError):
            PortalConfig.from_dict({"timeout": 5})


class TestPortalConfig:
    """Tests for PortalConfig page paths."""

    def test_pages(self):
        """Test page paths are formatted from ids."""
        portal = make_portal()

        assert portal.listing_page(1031) == "/Home/ListFunded?FinanceTerm=1031"
        assert portal.application_page(42) == "/Home/ViewApplication/42"
        assert portal.post_evaluation_page(42) == "/Home/ViewPostEvaluation/42"


class TestPortalClient:
    """Tests for the portal client."""

    @pytest.mark.asyncio
    async def test_context_manager(self):
        """Test the session is open only inside the context."""
        client = PortalClient(make_portal())
        async with client:
            assert client.is_open
        assert not client.is_open

    @pytest.mark.asyncio
    async def test_fetch_outside_context(self):
        """Test fetching without an open session raises."""
        client = PortalClient(make_portal())
        with pytest.raises(RuntimeError):
            await client.fetch_listing(1031)

    @pytest.mark.asyncio
    async def test_paths_resolve_against_base_url(self):
        """Test detail pages are requested on the portal host."""
        hosts = []

        def handler(request: httpx.Request) -> httpx.Response:
            hosts.append((request.url.host, request.url.raw_path.decode()))
            return httpx.Response(200, text=APPLICATION_HTML)

        client = PortalClient(make_portal(), transport=httpx.MockTransport(handler))
        async with client:
            html = await client.fetch_application(42)

        assert html == APPLICATION_HTML
        assert hosts == [("finance.example.edu", "/Home/ViewApplication/42")]

    @pytest.mark.asyncio
    async def test_error_status_not_retried(self):
        """Test an error status is raised after a single request."""
        requested = []
        client = PortalClient(make_portal(), transport=make_transport({}, requested))
        async with client:
            with pytest.raises(httpx.HTTPStatusError):
                await client.fetch_post_evaluation(42)

        assert requested == ["/Home/ViewPostEvaluation/42"]


class TestFinanceScraper:
    """Integration tests for the term pipeline."""

    @pytest.mark.asyncio
    async def test_run_composes_records(self, pages):
        """Test listing, application and post-evaluation are composed."""
        requested = []
        scraper = make_scraper(pages, requested)

        records = await scraper.run(1031)

        assert [r.event.id for r in records] == [42, 43]
        assert records[0].application.questions == {"Status": "Awarded", "On Campus": "unchecked"}
        assert len(records[0].application.costs) == 1
        assert records[0].post_evaluation.questions == {"Actual attendance": "120"}
        assert records[1].post_evaluation is None
        assert "/Home/ViewPostEvaluation/43" not in requested
        assert scraper.stats["post_evaluations"] == 1

    @pytest.mark.asyncio
    async def test_max_events(self, pages):
        """Test event limit applies in listing order."""
        requested = []
        scraper = make_scraper(pages, requested)

        records = await scraper.run(1031, max_events=1)

        assert [r.event.id for r in records] == [42]
        assert "/Home/ViewApplication/43" not in requested
        assert scraper.stats["events_listed"] == 2

    @pytest.mark.asyncio
    async def test_broken_application_aborts(self, pages):
        """Test a structurally broken detail page aborts the run."""
        pages["/Home/ViewApplication/43"] = "<p>Application not found</p>"
        scraper = make_scraper(pages, [])

        with pytest.raises(StructuralPreconditionError):
            await scraper.run(1031)

    @pytest.mark.asyncio
    async def test_http_error_propagates(self, pages):
        """Test transport errors are not swallowed."""
        del pages["/Home/ViewApplication/42"]
        scraper = make_scraper(pages, [])

        with pytest.raises(httpx.HTTPStatusError):
            await scraper.run(1031)

    @pytest.mark.asyncio
    async def test_save_outputs(self, pages, tmp_path):
        """Test JSON and JSONL output files."""
        scraper = make_scraper(pages, [], tmp_path)
        records = await scraper.run(1031)

        json_path = scraper.save_json(records, "apps-1031.json")
        jsonl_path = scraper.save_jsonl(records, "apps-1031.jsonl")

        data = json.loads((tmp_path / "apps-1031.json").read_text(encoding="utf-8"))
        assert json_path.endswith("apps-1031.json")
        assert data[0]["id"] == 42
        assert data[0]["date"] == "2024-03-01T00:00:00+00:00"
        assert data[0]["documents"] == [{"label": "Quote.pdf", "path": "/Home/DownloadFile?id=9"}]
        assert "awarded" not in data[1]
        assert "post_evaluation" not in data[1]

        lines = (tmp_path / "apps-1031.jsonl").read_text(encoding="utf-8").splitlines()
        assert jsonl_path.endswith("apps-1031.jsonl")
        assert len(lines) == 2

    @pytest.mark.asyncio
    async def test_failure_cancels_remaining_events(self, pages):
        """Test a fast failure leaves no event task running after the run."""
        requested = []

        async def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.raw_path.decode()
            requested.append(path)
            if path == "/Home/ViewApplication/42":
                await asyncio.sleep(0.2)
            if path == "/Home/ViewApplication/43":
                return httpx.Response(500, text="Server Error")
            return httpx.Response(200, text=pages[path])

        portal = make_portal()
        client = PortalClient(portal, transport=httpx.MockTransport(handler))
        scraper = FinanceScraper(portal=portal, client=client)

        with pytest.raises(httpx.HTTPStatusError):
            await scraper.run(1031)

        leftover = asyncio.all_tasks() - {asyncio.current_task()}
        assert leftover == set()
        assert not client.is_open
        assert "/Home/ViewPostEvaluation/42" not in requested

        # Nothing resumes once the slow request would have finished
        await asyncio.sleep(0.3)
        assert "/Home/ViewPostEvaluation/42" not in requested

    @pytest.mark.asyncio
    async def test_stats_reset_between_runs(self, pages):
        """Test statistics describe only the latest run."""
        scraper = make_scraper(pages, [])

        await scraper.run(1031)
        await scraper.run(1031)

        assert scraper.stats == {
            "events_listed": 2,
            "events_extracted": 2,
            "post_evaluations": 1,
        }

"""
Tests for the command-line entry point and run modes.
"""

import asyncio
import json
import logging
from datetime import datetime

from catalog_crawler import cli, login
from catalog_crawler.cli import ColorStripFormatter, load_settings, main, run, timestamp
from catalog_crawler.base import Colors
from catalog_crawler.config import Settings
from catalog_crawler.login import LoginGate
from conftest import FakeSession, product_page


def settings_for(tmp_path, **values):
    return Settings(
        browser_profile_dir=str(tmp_path / 'profile'),
        output_dir=str(tmp_path / 'outputs'),
        **values,
    )


def factory_for(session):
    def factory(profile_dir, headless=False):
        session.profile_dir = profile_dir
        session.headless = headless
        return session
    return factory


class TestArguments:
    """Test flag parsing and precedence."""

    def test_flags_override_environment(self, monkeypatch):
        """Test that command-line flags take precedence over environment variables."""
        monkeypatch.setenv('MAX_PRODUCTS', '3')
        monkeypatch.setenv('TARGET_URL', 'https://env.test')
        settings = load_settings(['--crawlSitemap', '--maxProducts', '7'])

        assert settings.crawl_sitemap is True
        assert settings.max_products == 7
        assert settings.target_url == 'https://env.test'

    def test_equals_and_explicit_booleans(self):
        """Test --flag=value syntax and explicit false for boolean flags."""
        settings = load_settings(['--url=https://a.test', '--selector', 'a.item', '--headless=false'])
        assert settings.target_url == 'https://a.test'
        assert settings.selector == 'a.item'
        assert settings.headless is False

    def test_snake_case_aliases(self):
        """Test the kebab-case spellings of camelCase flags."""
        settings = load_settings(['--crawl-sitemap', 'true', '--max-products', '5', '--batch-size', '4'])
        assert settings.crawl_sitemap is True
        assert settings.max_products == 5
        assert settings.batch_size == 4

    def test_missing_parameters_exit_with_usage(self, capsys):
        """Test that single-page mode without URL or selector prints usage and exits 1."""
        assert main([]) == 1
        assert 'Usage:' in capsys.readouterr().err

    def test_selector_without_url_exits(self, capsys):
        """Test that a selector alone is not enough to run."""
        assert main(['--selector', 'a']) == 1
        assert 'Usage:' in capsys.readouterr().err

    def test_timestamp_format(self):
        """Test the output file timestamp format."""
        assert timestamp(datetime(2025, 1, 31, 14, 25, 1)) == '20250131-142501'


class TestSitemapMode:
    """Test the full sitemap crawl with a fake browser session."""

    def test_writes_product_csv(self, tmp_path, shop_sitemaps):
        """Test a sitemap crawl end to end into a prefixed CSV file."""
        pages = {
            'https://shop.test/products/raspberry-pi-5': product_page('Raspberry Pi 5', sku='SC1111', price='58.80'),
            'https://shop.test/products/pico-w': product_page('Pico W', sku='SC0918', price='5.80'),
            'https://shop.test/products/hat-case': product_page('HAT Case [Discontinued]', sku='HC1', price='3.00'),
        }
        session = FakeSession(pages=pages, documents=shop_sitemaps)
        settings = settings_for(tmp_path, crawl_sitemap=True, target_url='https://shop.test', headless=True)

        assert asyncio.run(run(settings, session_factory=factory_for(session))) == 0
        assert session.started and session.session_closed
        assert session.headless is True

        outputs = list((tmp_path / 'outputs').glob('shop-*.csv'))
        assert len(outputs) == 1
        assert outputs[0].read_text(encoding='utf-8').splitlines() == [
            'name,sku,price,availability',
            '"Raspberry Pi 5","SC1111","58.80","InStock"',
            '"Pico W","SC0918","5.80","InStock"',
            '"HAT Case [Discontinued]","HC1","3.00","Discontinued"',
        ]

    def test_logs_run_summary(self, tmp_path, shop_sitemaps, caplog):
        """Test that a sitemap crawl logs its run summary as JSON."""
        pages = {'https://shop.test/products/raspberry-pi-5': product_page('Raspberry Pi 5', sku='SC1111')}
        session = FakeSession(pages=pages, documents=shop_sitemaps)
        settings = settings_for(tmp_path, crawl_sitemap=True, target_url='https://shop.test', max_products=1)

        caplog.set_level(logging.INFO, logger='catalog_crawler')
        assert asyncio.run(run(settings, session_factory=factory_for(session))) == 0

        messages = [r.getMessage() for r in caplog.records if r.getMessage().startswith('Run summary: ')]
        assert len(messages) == 1
        summary = json.loads(messages[0][len('Run summary: '):])
        assert summary['discovered'] == 3
        assert summary['attempted'] == 1
        assert summary['written'] == 1
        assert summary['failed_urls'] == []
        assert summary['success'] is True
        assert summary['output_path'].endswith('.csv')

    def test_max_products_cap(self, tmp_path, shop_sitemaps):
        """Test that the product cap limits pages opened."""
        pages = {
            'https://shop.test/products/raspberry-pi-5': product_page('Raspberry Pi 5'),
            'https://shop.test/products/pico-w': product_page('Pico W'),
        }
        session = FakeSession(pages=pages, documents=shop_sitemaps)
        settings = settings_for(tmp_path, crawl_sitemap=True, target_url='https://shop.test', max_products=1)

        assert asyncio.run(run(settings, session_factory=factory_for(session))) == 0
        assert session.opened == 1

    def test_sitemap_failure_exits_nonzero_and_closes_session(self, tmp_path):
        """Test that a missing root sitemap fails the run and still closes the browser."""
        session = FakeSession(documents={})
        settings = settings_for(tmp_path, crawl_sitemap=True, target_url='https://down.test')

        assert asyncio.run(run(settings, session_factory=factory_for(session))) == 1
        assert session.session_closed is True
        assert not (tmp_path / 'outputs').exists()


class TestSinglePageMode:
    """Test selector mode and the login pre-step."""

    LIST_PAGE = """
    <html><body>
      <a class="item" href="https://shop.test/p/1">First</a>
      <a href="https://shop.test/p/2"><span class="item">Second "quoted"</span></a>
      <span class="item">No link</span>
    </body></html>
    """

    def test_writes_text_and_href(self, tmp_path):
        """Test selector mode output with own and enclosing anchor links."""
        session = FakeSession(pages={'https://shop.test/list': self.LIST_PAGE})
        settings = settings_for(tmp_path, target_url='https://shop.test/list', selector='.item')

        assert asyncio.run(run(settings, session_factory=factory_for(session))) == 0
        assert session.closed == session.opened == 1

        outputs = list((tmp_path / 'outputs').glob('scrape-*.csv'))
        assert len(outputs) == 1
        assert outputs[0].read_text(encoding='utf-8').splitlines() == [
            'text,href',
            '"First","https://shop.test/p/1"',
            '"Second ""quoted""","https://shop.test/p/2"',
            '"No link",""',
        ]

    def test_login_runs_before_scrape(self, tmp_path, monkeypatch):
        """Test that the login page is confirmed before the target page loads."""
        confirmations = []

        async def fake_confirm():
            confirmations.append(True)

        monkeypatch.setattr(login, 'wait_for_enter', fake_confirm)
        session = FakeSession(pages={'https://shop.test/list': self.LIST_PAGE})
        settings = settings_for(
            tmp_path,
            target_url='https://shop.test/list',
            selector='.item',
            login_url='https://shop.test/account/login',
        )

        assert asyncio.run(run(settings, session_factory=factory_for(session))) == 0
        assert confirmations == [True]
        gotos = [url for kind, url in session.events if kind == 'goto']
        assert gotos == ['https://shop.test/account/login', 'https://shop.test/list']

    def test_login_gate_uses_injected_confirmation(self):
        """Test LoginGate with an injected confirmation callable."""
        session = FakeSession()
        calls = []

        async def confirm():
            calls.append('confirmed')

        async def go():
            async with session.new_page() as page:
                await LoginGate('https://shop.test/login', confirm=confirm)(page)
                return page

        page = asyncio.run(go())
        assert calls == ['confirmed']
        assert page.goto_calls[0]['url'] == 'https://shop.test/login'


class TestLogging:
    """Test log formatting."""

    def test_color_codes_are_stripped(self):
        """Test that file logs have ANSI color codes removed."""
        formatter = ColorStripFormatter('%(message)s')
        record = logging.LogRecord('catalog_crawler', logging.INFO, __file__, 1, Colors.green('saved'), None, None)
        assert formatter.format(record) == 'saved'

    def test_configure_logging_creates_log_file(self, tmp_path):
        """Test that logging setup creates the log file."""
        settings = Settings(log_dir=str(tmp_path / 'logs'))
        root = logging.getLogger()
        previous = root.handlers[:]
        try:
            cli.configure_logging(settings)
            logging.getLogger('catalog_crawler.test').info('hello')
            assert settings.log_file.exists()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = previous

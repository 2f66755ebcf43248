import io
import json
import logging

import pytest

from conftest import FakePage
from icp_lookup.main import main


@pytest.fixture(autouse=True)
def restore_logging(tmp_path, monkeypatch):
    """main() reconfigures the root logger; put it back afterwards"""
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def domain_list(tmp_path):
    path = tmp_path / "domains.txt"
    path.write_text("listed-one.com\nlisted-two.com\n", encoding="utf-8")
    return path


def test_no_input_prints_usage(fake_browser, sleeps):
    out = io.StringIO()
    assert main([], stdin=io.StringIO(""), stdout=out) == 1
    assert out.getvalue().startswith("usage:")
    assert fake_browser.contexts == []


def test_target_takes_precedence_over_list(fake_browser, sleeps, domain_list):
    out = io.StringIO()
    code = main(["-t", "example.com", "-l", str(domain_list), "-json"],
                stdin=io.StringIO(""), stdout=out)

    assert code == 0
    visited = [url for page in fake_browser.pages for url in page.visited]
    assert visited[0] == "https://icp.chinaz.com/example.com"
    assert not any("listed" in url for url in visited)
    payload = json.loads(out.getvalue())
    assert payload["input"] == "example.com"
    assert payload["com_name"] == "北京某某公司"


def test_reads_list_file(fake_browser, sleeps, domain_list):
    out = io.StringIO()
    assert main(["-l", str(domain_list), "--json"], stdin=io.StringIO(""), stdout=out) == 0

    inputs = [json.loads(line)["input"] for line in out.getvalue().splitlines()]
    assert inputs == ["listed-one.com", "listed-two.com"]


def test_reads_piped_stdin_as_text(fake_browser, sleeps):
    out = io.StringIO()
    assert main([], stdin=io.StringIO("example.com\n"), stdout=out) == 0
    assert out.getvalue().splitlines()[0] == "Input: example.com"


def test_unreadable_list_file_is_fatal(fake_browser, sleeps, tmp_path):
    out = io.StringIO()
    code = main(["-l", str(tmp_path / "missing.txt")], stdin=io.StringIO(""), stdout=out)
    assert code == 1
    assert fake_browser.contexts == []


def test_failed_domains_still_exit_zero(fake_browser, sleeps):
    fake_browser.page_factory = lambda: FakePage(markup="")
    out = io.StringIO()
    assert main(["-t", "example.com", "-r", "2"], stdin=io.StringIO(""), stdout=out) == 0
    assert out.getvalue() == ""
    assert len(fake_browser.contexts) == 2
    assert sleeps == [5.0, 5.0]


def test_invalid_retry_count_rejected(fake_browser, sleeps):
    assert main(["-t", "example.com", "-r", "0"], stdin=io.StringIO(""), stdout=io.StringIO()) == 1


def test_explicit_config_file_missing(fake_browser, sleeps, tmp_path):
    code = main(["-t", "example.com", "--config", str(tmp_path / "nope.yaml")],
                stdin=io.StringIO(""), stdout=io.StringIO())
    assert code == 1


def test_non_utf8_list_file_is_fatal(fake_browser, sleeps, tmp_path):
    path = tmp_path / "domains_gbk.txt"
    path.write_bytes("例子.中国\nexample.com\n".encode("gbk"))

    code = main(["-l", str(path)], stdin=io.StringIO(""), stdout=io.StringIO())

    assert code == 1
    assert fake_browser.contexts == []


def test_debug_traces_to_stdout(fake_browser, sleeps, capsys):
    out = io.StringIO()
    assert main(["-t", "example.com", "-debug"], stdin=io.StringIO(""), stdout=out) == 0

    captured = capsys.readouterr()
    assert " - DEBUG - " in captured.out
    assert "Navigating to https://icp.chinaz.com/example.com" in captured.out
    assert " - DEBUG - " not in captured.err
    assert out.getvalue().startswith("Input: example.com")


def test_without_debug_logs_stay_off_stdout(fake_browser, sleeps, capsys):
    assert main(["-t", "example.com"], stdin=io.StringIO(""), stdout=io.StringIO()) == 0

    captured = capsys.readouterr()
    assert captured.out == ""
    assert " - INFO - " in captured.err
    assert " - DEBUG - " not in captured.err

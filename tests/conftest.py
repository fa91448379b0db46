import io
import os

import pytest
from PIL import Image

from config import cfg
from db_meta import db as database
from logger import setup_logging
import db_main
import gen_helpers as gh

# smallest thing filetype sniffs as video/mp4: an ftyp box with the isom brand
MP4_BYTES = (24).to_bytes(4, 'big') + b'ftypisom' + b'\x00\x00\x02\x00' + b'isomiso2' + b'\x00' * 64
EXE_BYTES = b'MZ\x90\x00\x03\x00\x00\x00\x04\x00\x00\x00\xff\xff\x00\x00' + b'\x00' * 112


def image_bytes(fmt='PNG', size=(400, 300)):
    buf = io.BytesIO()
    Image.new('RGB', size, (200, 30, 30)).save(buf, fmt)
    return buf.getvalue()


@pytest.fixture(autouse=True)
def chan_env(tmp_path, monkeypatch):
    """ every test gets an empty in-memory db and its own static root """
    monkeypatch.setattr(cfg, 'static_root', str(tmp_path / 'public'))
    monkeypatch.setattr(cfg, 'error_log', str(tmp_path / 'error.txt'))
    monkeypatch.setattr(cfg, 'enable_csrf', False)
    monkeypatch.setattr(cfg, 'static_pages', True)
    setup_logging()
    database.create_test_db()
    yield tmp_path


@pytest.fixture
def static_root(chan_env):
    return chan_env / 'public'


@pytest.fixture
def make_upload(tmp_path):
    """ writes data to a temp file, like a web server would before handing it over """
    tmpdir = tmp_path / 'incoming'
    tmpdir.mkdir()

    def make(filename, data):
        path = tmpdir / ('php%s.tmp' % len(os.listdir(str(tmpdir))))
        path.write_bytes(data)
        return gh.Upload(filename, path=str(path))
    return make


@pytest.fixture
def new_thread():
    def make(subject='Hello', message='World', board='1', now=1000, upload=None, name='Anonymous'):
        payload = {'board': board, 'parent': 0, 'name': name,
                   'subject': subject, 'message': message}
        return db_main.submit_post(payload, upload, now=now)
    return make


@pytest.fixture
def new_reply():
    def make(parent, message='Reply text', board='1', now=2000, upload=None, name='Anonymous'):
        payload = {'board': board, 'parent': parent, 'name': name,
                   'subject': '', 'message': message}
        return db_main.submit_post(payload, upload, now=now)
    return make


def listdir(path):
    return sorted(os.listdir(str(path))) if os.path.isdir(str(path)) else []

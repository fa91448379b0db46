import io
import os

import pytest
from PIL import Image
from werkzeug.datastructures import FileStorage

import errors as err
import gen_helpers as gh
from config import cfg
from conftest import EXE_BYTES, MP4_BYTES, image_bytes, listdir


def test_png_is_kept_without_thumbnail(make_upload, static_root):
    media = gh.save_upload(make_upload('cat.PNG', image_bytes('PNG')), 5, '1')
    assert media == gh.Media('5.png', '')
    assert listdir(static_root / '1' / 'src') == ['5.png']
    assert listdir(static_root / '1' / 'thumb') == []


def test_jpeg_gets_a_bounded_thumbnail(make_upload, static_root):
    upload = make_upload('photo.jpg', image_bytes('JPEG', size=(1000, 400)))
    media = gh.save_upload(upload, 9, '1')
    assert media == gh.Media('9.jpg', '9s.jpg')
    with Image.open(str(static_root / '1' / 'thumb' / '9s.jpg')) as thumb:
        assert thumb.format == 'JPEG'
        assert thumb.size == (255, 102)


def test_upload_file_is_moved_not_copied(make_upload):
    upload = make_upload('cat.png', image_bytes('PNG'))
    gh.save_upload(upload, 1, '1')
    assert not os.path.exists(upload.path)


def test_mp4_is_accepted(make_upload, static_root):
    media = gh.save_upload(make_upload('clip.mp4', MP4_BYTES), 3, '2')
    assert media == gh.Media('3.mp4', '')
    assert listdir(static_root / '2' / 'src') == ['3.mp4']


def test_executable_named_png_is_rejected(make_upload, static_root):
    with pytest.raises(err.ContentMismatch) as exc:
        gh.save_upload(make_upload('cat.png', EXE_BYTES), 4, '1')
    assert exc.value.message == 'Invalid file content (mime mismatch).'
    assert listdir(static_root / '1' / 'src') == []


def test_image_named_mp4_is_rejected(make_upload, static_root):
    with pytest.raises(err.ContentMismatch):
        gh.save_upload(make_upload('clip.mp4', image_bytes('PNG')), 4, '1')
    assert listdir(static_root / '1' / 'src') == []


def test_truncated_jpeg_leaves_nothing_behind(make_upload, static_root):
    data = image_bytes('JPEG')[:40]
    with pytest.raises(err.ContentMismatch):
        gh.save_upload(make_upload('broken.jpg', data), 6, '1')
    assert listdir(static_root / '1' / 'src') == []
    assert listdir(static_root / '1' / 'thumb') == []


def test_file_too_large():
    upload = gh.Upload('big.png', stream=io.BytesIO(b'x'), size=cfg.max_file_size + 1)
    with pytest.raises(err.FileTooLarge) as exc:
        gh.save_upload(upload, 1, '1')
    assert exc.value.message == 'File too large (max: 2 MB).'
    assert exc.value.status == 413


@pytest.mark.parametrize('filename', ['notes.txt', 'archive.tar.gz', 'noextension'])
def test_unsupported_type(make_upload, filename):
    with pytest.raises(err.UnsupportedType):
        gh.save_upload(make_upload(filename, b'hello'), 1, '1')


def test_partial_upload():
    with pytest.raises(err.UploadTransportError):
        gh.save_upload(gh.Upload('cat.png', error=gh.PARTIAL), 1, '1')


@pytest.mark.parametrize('upload', [None, gh.Upload('', error=gh.NO_FILE)])
def test_no_file(upload):
    assert gh.save_upload(upload, 1, '1') is None


def test_from_filestorage_reads_the_stream(static_root):
    data = image_bytes('GIF')
    fs = FileStorage(stream=io.BytesIO(data), filename='anim.gif')
    upload = gh.Upload.from_filestorage(fs)
    assert upload.present
    assert upload.size == len(data)
    assert gh.save_upload(upload, 2, '1') == gh.Media('2.gif', '')
    assert (static_root / '1' / 'src' / '2.gif').read_bytes() == data


def test_from_filestorage_without_a_file():
    assert not gh.Upload.from_filestorage(None).present
    assert not gh.Upload.from_filestorage(FileStorage(stream=io.BytesIO(b''), filename='')).present


def test_discard_media_removes_source_and_thumb(make_upload, static_root):
    gh.save_upload(make_upload('photo.jpeg', image_bytes('JPEG')), 11, '1')
    gh.save_upload(make_upload('other.png', image_bytes('PNG')), 110, '1')
    removed = gh.discard_media('1', 11)
    assert sorted(os.path.basename(p) for p in removed) == ['11.jpeg', '11s.jpg']
    assert listdir(static_root / '1' / 'src') == ['110.png']

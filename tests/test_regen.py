import os
import stat

import pytest

import errors as err
import regen
from conftest import listdir


def read(path):
    with open(str(path), encoding='utf-8') as f:
        return f.read()


def test_empty_board_still_gets_an_index(static_root):
    assert regen.regenerate_board_pages('1') == 1
    assert listdir(static_root / '1') == ['index.html']
    assert 'No threads yet.' in read(static_root / '1' / 'index.html')


def test_pages_follow_thread_count(new_thread, static_root):
    ids = [new_thread(subject='thread %s' % n, now=1000 + n) for n in range(11)]
    assert regen.regenerate_board_pages('1') == 3
    assert listdir(static_root / '1') == ['2.html', '3.html', 'index.html']

    pages = [read(static_root / '1' / name) for name in ('index.html', '2.html', '3.html')]
    for tid in ids:
        link = 'href="/1/res/%s.html"' % tid
        assert sum(link in page for page in pages) == 1
    # newest bump first
    assert '>thread 10<' in pages[0]
    assert '>thread 0<' in pages[2]


def test_stale_pages_are_removed(new_thread, static_root):
    for n in range(6):
        new_thread(now=1000 + n)
    regen.regenerate_board_pages('1')
    (static_root / '1' / '7.html').write_text('left over')
    (static_root / '1' / 'notes.html').write_text('not ours')
    regen.regenerate_board_pages('1')
    assert listdir(static_root / '1') == ['2.html', 'index.html', 'notes.html']


def test_thread_page(new_thread, new_reply, static_root):
    tid = new_thread()
    new_reply(tid, message='first reply', now=2000)
    path = regen.regenerate_thread_page('1', tid)
    assert path == os.path.join(str(static_root), '1', 'res', '%s.html' % tid)
    assert 'first reply' in read(path)


def test_thread_page_for_missing_thread(static_root):
    assert regen.regenerate_thread_page('1', 42) is None
    assert not os.path.exists(str(static_root / '1' / 'res' / '42.html'))


def test_pages_are_world_readable_and_leave_no_temp_files(new_thread, static_root):
    regen.regenerate_after_post('1', new_thread(), True)
    mode = stat.S_IMODE(os.stat(str(static_root / '1' / 'index.html')).st_mode)
    assert mode == 0o644
    assert not [n for n in listdir(static_root / '1') if n.endswith('.tmp')]


def test_regenerate_after_post(new_thread, new_reply, static_root):
    tid = new_thread()
    regen.regenerate_after_post('1', tid, True)
    assert listdir(static_root) == ['1', 'index.html']
    assert '1 thread<' in read(static_root / 'index.html')

    os.remove(str(static_root / 'index.html'))
    new_reply(tid)
    regen.regenerate_after_post('1', tid, False)
    # replies don't change the board list
    assert listdir(static_root) == ['1']
    assert 'Reply [1]' in read(static_root / '1' / 'index.html')


def test_regenerate_board_writes_every_thread(new_thread, static_root):
    ids = [new_thread() for _ in range(3)]
    new_thread(board='2')
    assert regen.regenerate_board('1') == 3
    assert listdir(static_root / '1' / 'res') == sorted('%s.html' % i for i in ids)


def test_write_failure_is_a_regeneration_error(static_root):
    static_root.mkdir()
    # a file where the board directory should be
    (static_root / '1').write_text('')
    with pytest.raises(err.RegenerationError):
        regen.regenerate_board_pages('1')


def test_older_pass_can_overwrite_a_newer_one(new_thread, static_root):
    """ two regenerations of one board race; the slower one wins """
    new_thread(subject='first', now=1000)
    stale = regen.collect_board_pages('1')

    new_thread(subject='second', now=1001)
    regen.regenerate_board_pages('1')
    assert '>second<' in read(static_root / '1' / 'index.html')

    regen.write_board_pages('1', stale)
    index = read(static_root / '1' / 'index.html')
    assert '>first<' in index
    assert '>second<' not in index

    # the next post to the board catches the index up
    new_thread(subject='third', now=1002)
    regen.regenerate_board_pages('1')
    index = read(static_root / '1' / 'index.html')
    assert '>second<' in index and '>third<' in index

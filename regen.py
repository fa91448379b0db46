from config import cfg
import db_main as db
import errors as err
import render

import os
import re
import logging
import tempfile

import sqlalchemy

log = logging.getLogger('chan.regen')

# Every pass rewrites whole files from whatever the db holds at the time.
# Two posts to the same board can regenerate at once, and nothing orders
# their writes: the pass that read the db first may write last, leaving the
# index one post behind until the next post to that board.

PAGE_RE = re.compile(r'^(\d+)\.html$')

def board_dir(board):
    return os.path.join(cfg.static_root, board)

def page_filename(page):
    return 'index.html' if page == 1 else '%s.html' % page

def collect_board_pages(board):
    """ renders every index page of the board from the current db state
        Returns:
            list: [(filename, html)], page 1 first
    """
    total = db.count_pages(db.count_threads(board))
    pages = list()
    for n in range(1, total + 1):
        view = render.BoardPage(board=board,
                                title=cfg.board_title,
                                threads=db.fetch_page(board, n),
                                page=n,
                                total_pages=total,
                                csrf_token=None,
                                partial=False)
        pages.append((page_filename(n), render.render_board_page(view)))
    return pages

def write_board_pages(board, pages):
    """ writes the pages, then removes numbered pages past the last one """
    bdir = board_dir(board)
    keep = set(name for name, _ in pages)
    try:
        os.makedirs(bdir, exist_ok=True)
        for name, html in pages:
            _write_file(os.path.join(bdir, name), html)
        for name in os.listdir(bdir):
            if PAGE_RE.match(name) and name not in keep:
                os.remove(os.path.join(bdir, name))
    except OSError as e:
        log.exception('writing index pages for /%s/ failed', board)
        raise err.RegenerationError('Could not write the index of /%s/.' % board) from e

def regenerate_board_pages(board):
    """ rebuilds index.html, 2.html, ... for the board. Always all of them;
    a bump can move any thread across a page boundary.
        Returns:
            int: number of pages written
    """
    pages = collect_board_pages(board)
    write_board_pages(board, pages)
    return len(pages)

def regenerate_thread_page(board, threadid):
    """ rebuilds res/<threadid>.html
        Returns:
            str: path written; None if the thread doesn't exist
    """
    thread = db.fetch_thread(board, threadid)
    if thread is None:
        log.warning('not regenerating /%s/ thread %s; no such thread', board, threadid)
        return None
    op, replies = thread
    view = render.ThreadPage(board=board,
                             title=cfg.board_title,
                             op=op,
                             replies=replies,
                             csrf_token=None,
                             partial=False)
    html = render.render_thread_page(view)
    resdir = os.path.join(board_dir(board), 'res')
    path = os.path.join(resdir, '%s.html' % threadid)
    try:
        os.makedirs(resdir, exist_ok=True)
        _write_file(path, html)
    except OSError as e:
        log.exception('writing /%s/ thread %s failed', board, threadid)
        raise err.RegenerationError('Could not write thread %s.' % threadid) from e
    return path

def regenerate_board(board):
    """ index pages plus every thread page on the board """
    regenerate_board_pages(board)
    threadids = db.fetch_thread_ids(board)
    for tid in threadids:
        regenerate_thread_page(board, tid)
    return len(threadids)

def regenerate_home():
    """ the board list at the site root """
    counts = db.fetch_thread_counts()
    boards = [(b, counts.get(b, 0)) for b in cfg.boards]
    path = os.path.join(cfg.static_root, 'index.html')
    try:
        os.makedirs(cfg.static_root, exist_ok=True)
        _write_file(path, render.render_home(boards))
    except OSError as e:
        log.exception('writing the home page failed')
        raise err.RegenerationError('Could not write the home page.') from e
    return path

def regenerate_after_post(board, threadid, isop):
    """ everything a new post can change: the board index, its thread,
    and the board list when a thread was added
    """
    try:
        regenerate_board_pages(board)
        regenerate_thread_page(board, threadid)
        if isop:
            regenerate_home()
    except sqlalchemy.exc.SQLAlchemyError as e:
        log.exception('reading /%s/ for regeneration failed (thread %s)', board, threadid)
        raise err.RegenerationError('Could not read /%s/ to update its pages.' % board) from e

def _write_file(path, html):
    """ write to a temp file next to path, then move it into place """
    fd, tmppath = tempfile.mkstemp(dir=os.path.dirname(path), suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(html)
        os.chmod(tmppath, 0o644) # mkstemp creates 0600
        os.replace(tmppath, path)
    except OSError:
        if os.path.exists(tmppath):
            os.remove(tmppath)
        raise

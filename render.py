""" Turns posts into html.

Nothing in here reads the database or writes files; every function takes a
view model and returns a string. The static regenerator and the dynamic
flask views both go through here, so a page looks the same either way.
"""
from config import cfg

import os
import datetime
from collections import namedtuple

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')

# threads: [(op_post, reply_count)]
BoardPage  = namedtuple('BoardPage', ['board', 'title', 'threads', 'page', 'total_pages', 'csrf_token', 'partial'])
ThreadPage = namedtuple('ThreadPage', ['board', 'title', 'op', 'replies', 'csrf_token', 'partial'])


def page_url(board, page):
    return '/%s/index.html' % board if page == 1 else '/%s/%s.html' % (board, page)

def thread_url(board, threadid):
    return '/%s/res/%s.html' % (board, threadid)

def src_url(board, filename):
    return '/%s/src/%s' % (board, filename)

def thumb_url(board, filename):
    return '/%s/thumb/%s' % (board, filename)

def accepted_types():
    return ', '.join(ext.upper() for ext in cfg.image_formats + cfg.video_formats)

def max_file_mb():
    return cfg.max_file_size // (1024 * 1024)

def nl2br(text):
    """ escapes first, then turns newlines into <br> """
    lines = escape(text).split('\n')
    return Markup('<br>\n').join(lines)

def preview(text):
    limit = cfg.index_preview_length
    return text if len(text) <= limit else text[:limit] + '...'

def _utc(timestamp):
    return datetime.datetime.fromtimestamp(timestamp, datetime.timezone.utc)

def posttime(timestamp):
    """ always UTC; the same static page is read from every time zone """
    return _utc(timestamp).strftime('%m/%d/%y (%a) %H:%M:%S')

def isotime(timestamp):
    return _utc(timestamp).isoformat()


env = Environment(loader=FileSystemLoader(TEMPLATE_DIR),
                  autoescape=select_autoescape(['html']),
                  line_statement_prefix='#',  # same jinja line mode the flask app used
                  line_comment_prefix='##')
env.filters.update(nl2br=nl2br, preview=preview, posttime=posttime, isotime=isotime)
env.globals.update(cfg=cfg,
                   page_url=page_url,
                   thread_url=thread_url,
                   src_url=src_url,
                   thumb_url=thumb_url,
                   accepted_types=accepted_types,
                   max_file_mb=max_file_mb)


def render_board_page(view):
    """ one page of a board index
        Args:
            view (BoardPage)
        Returns:
            str: html document (or just the #main fragment if view.partial)
    """
    title = view.title or cfg.board_title
    return env.get_template('board.html').render(view=view, title='/%s/ - %s' % (view.board, title))

def render_thread_page(view):
    """ Args:
            view (ThreadPage)
    """
    return env.get_template('thread.html').render(view=view,
                title='Thread #%s - /%s/' % (view.op.id, view.board))

def render_home(boards):
    """ Args:
            boards (list): [(board, thread_count)]
    """
    return env.get_template('home.html').render(boards=boards, title=cfg.board_title)

def render_error(message, back_url='/'):
    return env.get_template('error.html').render(message=message, back_url=back_url,
                title='Error - %s' % cfg.board_title)

def render_rules(message, back_url='/'):
    """ shown for every rejected upload """
    return env.get_template('rules.html').render(message=message, back_url=back_url,
                title='Upload Rules - %s' % cfg.board_title)

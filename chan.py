import db_main as db
import errors as err
import gen_helpers as gh
import posting
import regen
import render
from config import cfg
from logger import setup_logging

from flask import Flask, request, session, redirect, send_from_directory
from werkzeug.exceptions import RequestEntityTooLarge

import secrets
import logging
from functools import wraps

setup_logging()
log = logging.getLogger('chan.web')

app = Flask(__name__)
# the form fields ride along with the file, so leave some room over the file limit
app.config['MAX_CONTENT_LENGTH'] = cfg.max_file_size + 64 * 1024
app.secret_key = cfg.secret_key


@app.before_request
def assign_session_params():
    """ Makes sure the user has basic needs satisfied
        csrf_token: echoed back by every post form
        session_id: names the session in logs
    """
    if 'csrf_token' not in session:
        session['csrf_token'] = secrets.token_hex(32)
    if 'session_id' not in session:
        session['session_id'] = secrets.token_hex(8)
    return None


def if_board_exists(fn):
    """ Decorator
    Only allow request to continue if the board in question actually exists
    The function must be consuming a variable called board
    """
    @wraps(fn)
    def go(*args, **kwargs):
        if kwargs['board'] not in cfg.boards:
            raise err.DNE('board does not exist')
        return fn(*args, **kwargs)
    return go


def _post_context():
    return posting.PostContext(session['session_id'],
                               session['csrf_token'],
                               session.get('last_post_time'))

def _back_url():
    board = request.form.get('board', '') if request.method == 'POST' else ''
    return render.page_url(board if board in cfg.boards else cfg.default_board, 1)

def _is_partial():
    return request.headers.get('HX-Request') == 'true'


@app.route(cfg.post_url, methods=['POST'])
def newpost():
    """ handles the entire post upload process
        Returns:
            Redirects to the board index for new threads, to the thread for replies
    """
    if 'submit_post' not in request.form and 'post' not in request.form:
        return redirect(render.page_url(cfg.default_board, 1))

    fs = request.files.get('file') or request.files.get('image')
    upload = gh.Upload.from_filestorage(fs)
    ctx = _post_context()
    try:
        result = posting.submit(ctx, request.form, upload)
    finally:
        # a stored post counts against the rate limit even if regeneration failed
        if ctx.last_post_time is not None:
            session['last_post_time'] = ctx.last_post_time

    if result.isop:
        return redirect(render.page_url(result.board, 1))
    return redirect(render.thread_url(result.board, result.threadid) + '#%s' % result.postid)


@app.route('/', methods=['GET'])
@app.route('/index.html', methods=['GET'])
def root():
    if cfg.static_pages:
        return send_from_directory(cfg.static_root, 'index.html')
    counts = db.fetch_thread_counts()
    return render.render_home([(b, counts.get(b, 0)) for b in cfg.boards])


@app.route('/<board>/', methods=['GET'])
@app.route('/<board>/index.html', methods=['GET'])
@app.route('/<board>/<int:page>.html', methods=['GET'])
@if_board_exists
def index(board, page=1):
    if cfg.static_pages:
        return send_from_directory(regen.board_dir(board), regen.page_filename(page))
    total = db.count_pages(db.count_threads(board))
    if page < 1 or page > total:
        raise err.e404()
    view = render.BoardPage(board=board,
                            title=cfg.board_title,
                            threads=db.fetch_page(board, page),
                            page=page,
                            total_pages=total,
                            csrf_token=session['csrf_token'],
                            partial=_is_partial())
    return render.render_board_page(view)


@app.route('/<board>/res/<int:threadid>.html', methods=['GET'])
@if_board_exists
def thread(board, threadid):
    if cfg.static_pages:
        return send_from_directory(regen.board_dir(board), 'res/%s.html' % threadid)
    thread_data = db.fetch_thread(board, threadid)
    if thread_data is None:
        raise err.DNE('Specified thread does not exist')
    op, replies = thread_data
    view = render.ThreadPage(board=board,
                             title=cfg.board_title,
                             op=op,
                             replies=replies,
                             csrf_token=session['csrf_token'],
                             partial=_is_partial())
    return render.render_thread_page(view)


@app.route('/<board>/src/<path:filename>', methods=['GET'])
@if_board_exists
def media_src(board, filename):
    return send_from_directory(gh.media_dir(board, 'src'), filename)


@app.route('/<board>/thumb/<path:filename>', methods=['GET'])
@if_board_exists
def media_thumb(board, filename):
    return send_from_directory(gh.media_dir(board, 'thumb'), filename)


@app.errorhandler(err.BadMedia)
def handle_badmedia(error):
    log.info('upload rejected: %s', error.message)
    return render.render_rules(error.message, back_url=_back_url()), error.status

@app.errorhandler(RequestEntityTooLarge)
def handle_toolarge(error):
    message = 'File too large (max: %s MB).' % render.max_file_mb()
    log.info('upload rejected: %s', message)
    # request.form can't be read here; parsing it is what raised
    return render.render_rules(message, back_url=render.page_url(cfg.default_board, 1)), 413

@app.errorhandler(err.StorageError)
def handle_storage(error):
    # details are in the error log
    return render.render_error('Posting failure. Please try again later.', back_url=_back_url()), 500

@app.errorhandler(err.RegenerationError)
def handle_regeneration(error):
    message = 'Your post was saved, but the board pages could not be updated yet.'
    return render.render_error(message, back_url=_back_url()), 500

@app.errorhandler(err.ChanError)
def handle_chanerror(error):
    log.info('request rejected (%s): %s', type(error).__name__, error.message)
    return render.render_error(error.message, back_url=_back_url()), error.status


if __name__ == "__main__":
    from db_meta import db as database
    database.init_db()
    app.run(host='0.0.0.0', port=5000, debug=cfg.debug)

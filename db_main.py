# project specific
from config import cfg
from db_meta import db, Post
import db_cud
import errors as err
import gen_helpers as gh

#sqlalchemy
import sqlalchemy
from sqlalchemy import select, func, desc, asc

# python batteries
import time
import logging
from functools import wraps
from contextlib import contextmanager

# This file contains the entry points to db work from the flask application
# All functions here create new connections, and consume engines
# All functions must be decorated with with_db(SLAVE|MASTER)
# which will inject the relevant engine for use by the function.
# None of these functions should ever be called by another db function.

# None of the functions here should build CUD statements themselves
# They serve only to handle all the business logic between calls.

log = logging.getLogger('chan.db')

# attribute names on db_meta.db; looked up at call time so tests can swap the engine
MASTER = 'engine'
SLAVE  = 'slave'

@contextmanager
def connection(engine):
    """ spawns, and closes, a new connection """
    conn = engine.connect()
    try:
        yield conn
    finally:
        conn.close()

def with_db(target):
    """ Simple decorator to inject target db as the engine """
    def wrap(fn):
        @wraps(fn)
        def wrapped(*args, **kwargs):
            return fn(*args, engine=getattr(db, target), **kwargs)
        return wrapped
    return wrap

@with_db(MASTER)
def submit_post(payload, upload=None, now=None, engine=None):
    """ Stores a validated post, and its file, all or nothing.
    The row is inserted first so the upload can be named after its id.
    If anything after the insert fails, the transaction is rolled back,
    any leftover row and file are removed, and the original error is raised.

        Args:
            payload (dict): normalized post from validate.validate_post
            upload (Optional[Upload]): the uploaded file, if any
            now (Optional[int]): unix time of the submission
        Returns:
            int: post_id
        Raises:
            BadMedia: the upload was rejected
            StorageError: the database failed
    """
    now = int(time.time()) if now is None else now
    isop = payload['parent'] == 0
    postid = None
    try:
        with connection(engine) as conn:
            with db_cud.transaction(conn):
                postid = db_cud.insert_post(conn, payload, now)
                if upload is not None and (isop or cfg.reply_uploads):
                    media = gh.save_upload(upload, postid, payload['board'])
                    if media:
                        db_cud.attach_media(conn, postid, media.image, media.thumb)
                if not isop:
                    db_cud.bump_thread(conn, payload['parent'], now)
    except sqlalchemy.exc.SQLAlchemyError as e:
        log.exception('storing post failed (board=%s parent=%s)', payload['board'], payload['parent'])
        _abandon_post(postid, payload['board'], engine)
        raise err.StorageError('Posting failure. Please try again.') from e
    except Exception:
        _abandon_post(postid, payload['board'], engine)
        raise
    log.info('post %s created on /%s/ (parent=%s)', postid, payload['board'], payload['parent'])
    return postid

def _abandon_post(postid, board, engine):
    """ makes sure a failed post left nothing behind """
    if postid is None:
        return
    gh.discard_media(board, postid)
    try:
        # the lookup would autobegin a transaction that the delete then joins;
        # open it here so it commits
        with connection(engine) as conn, db_cud.transaction(conn):
            if db_cud.post_exists(conn, postid):
                db_cud.delete_post(conn, postid)
    except sqlalchemy.exc.SQLAlchemyError:
        log.exception('could not remove abandoned post %s', postid)

@with_db(SLAVE)
def fetch_post(postid, engine=None):
    """ Returns:
            Post: None if it doesn't exist
    """
    q = select(db.posts).where(db.posts.c.id == postid)
    with connection(engine) as conn:
        row = conn.execute(q).mappings().first()
    return Post.from_row(row) if row else None

@with_db(MASTER)
def fetch_thread_root(postid, engine=None):
    """ gets the thread root with the given id
    uses master, since a post is about to be written against it
        Returns:
            Post: None if postid isn't a thread root
    """
    posts = db.posts
    q = select(posts).where(posts.c.id == postid).where(posts.c.parent == 0)
    with connection(engine) as conn:
        row = conn.execute(q).mappings().first()
    return Post.from_row(row) if row else None

@with_db(SLAVE)
def count_threads(board, engine=None):
    posts = db.posts
    q = select(func.count(posts.c.id)).\
            where(posts.c.board == board).\
            where(posts.c.parent == 0)
    with connection(engine) as conn:
        return conn.execute(q).scalar()

def count_pages(thread_count):
    """ an empty board still has its one (empty) index page """
    per_page = cfg.index_threads_per_page
    return max(1, -(-thread_count // per_page))

@with_db(SLAVE)
def fetch_page(board, pgnum=1, engine=None):
    """ Gets the thread roots shown on one index page
    ordered by the last bump; threads bumped at the same second keep insertion order
        Args:
            board (str): board slug
            pgnum (Optional[int]): page number, starting at 1
        Returns:
            list: [(op_post, reply_count), ...]
    """
    posts = db.posts
    replies = posts.alias('replies')
    reply_count = select(func.count(replies.c.id)).\
                    where(replies.c.parent == posts.c.id).\
                    correlate(posts).\
                    scalar_subquery()
    per_page = cfg.index_threads_per_page
    q = select(posts, reply_count.label('reply_count')).\
            where(posts.c.board == board).\
            where(posts.c.parent == 0).\
            order_by(desc(posts.c.bumped), asc(posts.c.id)).\
            limit(per_page).\
            offset((pgnum - 1) * per_page)
    with connection(engine) as conn:
        rows = conn.execute(q).mappings().all()
    return [(Post.from_row(r), r['reply_count']) for r in rows]

@with_db(SLAVE)
def fetch_thread(board, threadid, engine=None):
    """ gets all the posts for a single thread
        Args:
            board (str): board slug
            threadid (int): id of the thread root
        Returns:
            tuple: (op_post, [replies in posting order]); None if there is no such thread
    """
    posts = db.posts
    op_query = select(posts).\
                where(posts.c.id == threadid).\
                where(posts.c.board == board).\
                where(posts.c.parent == 0)
    replies_query = select(posts).\
                where(posts.c.parent == threadid).\
                where(posts.c.board == board).\
                order_by(asc(posts.c.timestamp), asc(posts.c.id))
    with connection(engine) as conn:
        op = conn.execute(op_query).mappings().first()
        if not op:
            return None
        replies = conn.execute(replies_query).mappings().all()
    return Post.from_row(op), [Post.from_row(r) for r in replies]

@with_db(SLAVE)
def fetch_thread_ids(board, engine=None):
    """ every thread root id on the board, oldest first """
    posts = db.posts
    q = select(posts.c.id).\
            where(posts.c.board == board).\
            where(posts.c.parent == 0).\
            order_by(asc(posts.c.id))
    with connection(engine) as conn:
        return [r[0] for r in conn.execute(q)]

@with_db(SLAVE)
def fetch_thread_counts(engine=None):
    """ Returns:
            dict: {board: number of threads}, only boards with threads
    """
    posts = db.posts
    q = select(posts.c.board, func.count(posts.c.id)).\
            where(posts.c.parent == 0).\
            group_by(posts.c.board)
    with connection(engine) as conn:
        return {board: count for board, count in conn.execute(q)}

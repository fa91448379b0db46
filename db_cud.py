from db_meta import db
import errors as err
from sqlalchemy import select
from contextlib import contextmanager

# this file handles all CUD operations
# every function here consumes a connection
# and operates using transactions (regardless of complexity and strict-dependencies of sql interaction)
#  life is just easier with a consistent assumption.

# transaction() joins an already open transaction, so
# functions here can call each other freely

# NOTE: NO FUNCTION IN THIS FILE WILL CLOSE THE CONNECTION

@contextmanager
def transaction(conn):
    """ begins a transaction on conn, or joins the one already in progress """
    if conn.in_transaction():
        yield
        return
    trans = conn.begin()
    try:
        yield
    except BaseException:
        trans.rollback()
        raise
    else:
        trans.commit()

def insert_post(conn, payload, now):
    """ Inserts a new post, without value validation.
    The media columns start empty; attach_media fills them once the upload is safe.

        Args:
            payload (dict): normalized post: board, parent, name, subject, message
            now (int): unix timestamp; used for both timestamp and bumped
        Returns:
            int: post_id
    """
    if payload['parent'] and payload['subject']:
        raise err.BadInput('Replies cannot have a subject')
    postdata = {
        'board'     : payload['board'],
        'parent'    : payload['parent'],
        'name'      : payload['name'],
        'subject'   : payload['subject'],
        'message'   : payload['message'],
        'image'     : '',
        'thumb'     : '',
        'timestamp' : now,
        'bumped'    : now}
    with transaction(conn):
        post_id = conn.execute(db.posts.insert().values(**postdata)).inserted_primary_key[0]
    return post_id

def attach_media(conn, postid, image, thumb=''):
    query = db.posts.update().\
                where(db.posts.c.id == postid).\
                values(image=image, thumb=thumb)
    with transaction(conn):
        conn.execute(query)

def bump_thread(conn, threadid, now):
    """ moves the thread root to the top of its board
    only thread roots are ever bumped; replies keep their creation time
    """
    posts = db.posts
    query = posts.update().\
                where(posts.c.id == threadid).\
                where(posts.c.parent == 0).\
                values(bumped=now)
    with transaction(conn):
        conn.execute(query)

def delete_post(conn, postid):
    """ removes a single row; only used to clean up a post that failed halfway """
    with transaction(conn):
        conn.execute(db.posts.delete().where(db.posts.c.id == postid))

def post_exists(conn, postid):
    q = select(db.posts.c.id).where(db.posts.c.id == postid)
    return conn.execute(q).first() is not None

""" The post submission pipeline.

    csrf -> rate limit -> validate -> store (with upload) -> regenerate

Everything the pipeline needs from the poster's session travels in a
PostContext; the web layer builds one from the session and copies it
back afterwards.
"""
from config import cfg
import db_main as db
import errors as err
import regen
import validate

import hmac
import time
import logging
from collections import namedtuple

log = logging.getLogger('chan.posting')

PostResult = namedtuple('PostResult', ['postid', 'board', 'threadid', 'isop'])


class PostContext(object):
    def __init__(self, session_id, csrf_token, last_post_time=None):
        self.session_id     = session_id
        self.csrf_token     = csrf_token
        self.last_post_time = last_post_time # unix time of the last accepted post

    def __repr__(self):
        return '<PostContext %s last_post=%s>' % (self.session_id, self.last_post_time)


def check_csrf(ctx, token):
    if not cfg.enable_csrf:
        return
    if not token or not ctx.csrf_token or not hmac.compare_digest(str(token), str(ctx.csrf_token)):
        raise err.CsrfMismatch('Invalid CSRF token.')

def check_rate_limit(ctx, now):
    if ctx.last_post_time is None:
        return
    wait = cfg.minsec_between_posts - (now - ctx.last_post_time)
    if wait > 0:
        raise err.RateLimited("You're posting too fast. Please wait %s more second%s."
                                % (wait, '' if wait == 1 else 's'))

def submit(ctx, form, upload=None, now=None):
    """ handles the entire post submission, start to finish

        Args:
            ctx (PostContext): the poster's session; last_post_time is updated on success
            form (dict-like): submitted fields: csrf_token, parent, board, name, subject, message/body
            upload (Optional[Upload]): the uploaded file
            now (Optional[int]): unix time of the submission
        Returns:
            PostResult
        Raises:
            CsrfMismatch, RateLimited, BadInput, ParentNotFound, BadMedia, StorageError:
                nothing was stored
            RegenerationError: the post is stored, but the static pages are behind
    """
    now = int(time.time()) if now is None else now
    check_csrf(ctx, form.get('csrf_token'))
    check_rate_limit(ctx, now)

    message = form.get('message')
    if message is None:
        message = form.get('body')
    payload = validate.validate_post(form.get('parent'),
                                     form.get('subject'),
                                     message,
                                     board=form.get('board'),
                                     name=form.get('name'))

    postid = db.submit_post(payload, upload, now=now)
    ctx.last_post_time = now

    isop = payload['parent'] == 0
    result = PostResult(postid=postid,
                        board=payload['board'],
                        threadid=postid if isop else payload['parent'],
                        isop=isop)
    # the post is committed by now; a failure below never takes it back
    if cfg.static_pages:
        regen.regenerate_after_post(result.board, result.threadid, isop)
    return result

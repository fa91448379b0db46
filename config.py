import os

# this will be imported into all other modules
# and ofc, its python, so you use whatever logic you want
# but all modules will be assuming you haven't removed any
# variable from existence.

# They will also assume values are reasonable. ie, not -1
# for index_threads_per_page.

class Config():
    debug = False
    # Master/Slave URIs, if replicating the DB.
    # Master should handle writes, and any reads immediately following a write
    # Only pure reads should use the slave.
    master = os.environ.get('CHAN_DATABASE', 'sqlite:///chan.sqlite')
    slave  = None # if None, slave == master aka there is only one db.

    secret_key = os.environ.get('CHAN_SECRET_KEY', 'change-me')
    # static pages are shared by every visitor and can't carry a session token;
    # only turn this on with static_pages = False
    enable_csrf = False
    minsec_between_posts = 10 # per session; only accepted posts count

    # site/board configs
    # granularity is site-level. no board-specific configs.
    board_title   = 'statichan'
    boards        = [str(n) for n in range(1, 101)]
    default_board = '1'

    # static mode writes every page to static_root after each post.
    # dynamic mode renders pages from the db on every request.
    static_pages = True
    static_root  = os.path.abspath(os.environ.get('CHAN_STATIC_ROOT', 'public'))
    post_url     = '/post'

    index_threads_per_page = 5   # n threads per index page
    index_preview_length   = 900 # op message is cut at n chars on index pages
    post_max_length        = 20000
    subject_max_length     = 100
    name_max_length        = 35
    default_name           = 'Anonymous'

    # uploads
    max_file_size = 2 * 1024 * 1024
    reply_uploads = False # only thread roots take files
    image_formats = ['png', 'jpg', 'jpeg', 'gif', 'webp']
    image_mimes   = ['image/png', 'image/jpeg', 'image/gif', 'image/webp']
    video_formats = ['mp4']
    video_mimes   = ['video/mp4']

    # thumbnail settings
    # only these source formats get a thumbnail; everything else is shown full size
    thumb_formats    = ['jpg', 'jpeg']
    thumb_max_width  = 255
    thumb_max_height = 255
    thumb_quality    = 85

    # display sizes used by the templates
    thumb_display_width     = 255
    thumb_display_height    = 255
    fullsize_display_width  = 500
    fullsize_display_height = 500

    error_log = os.environ.get('CHAN_ERROR_LOG', 'error.txt')
    log_level = 'INFO'


cfg = Config() # don't touch this

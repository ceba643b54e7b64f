PHOTO_UPLOAD_POINTS = 10
UPVOTE_POINTS = 5

AWARD_POINTS = {
    "upload": PHOTO_UPLOAD_POINTS,
    "upvote": UPVOTE_POINTS,
}

HISTORY_DEFAULT_LIMIT = 50
DASHBOARD_RECENT_LIMIT = 5
VOUCHER_CODE_MAX_ATTEMPTS = 8
RECONCILE_BATCH_SIZE = 500

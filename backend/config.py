import os

BASEDIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(BASEDIR, 'clueboard.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Wrong category guesses tolerated before elimination
    LIFE_LIMIT = int(os.environ.get('LIFE_LIMIT', '4'))
    # Refill lives after every correct category guess
    RESET_LIVES_ON_CORRECT = os.environ.get('RESET_LIVES_ON_CORRECT', '0') == '1'
    LEADERBOARD_SIZE = int(os.environ.get('LEADERBOARD_SIZE', '5'))
    # Puzzle dataset (JSON). Empty uses the bundled one.
    PUZZLE_DATA_PATH = os.environ.get('PUZZLE_DATA_PATH') or None
    # Header the hosting platform sets with the player's identity
    PLAYER_IDENTITY_HEADER = os.environ.get('PLAYER_IDENTITY_HEADER', 'X-Player-Identity')
    # Grace period before a session whose owner socket dropped is ended (seconds)
    SESSION_END_GRACE_SEC = float(os.environ.get('SESSION_END_GRACE_SEC', '2'))
    # Sessions untouched this long are ended when the next one is created (seconds, 0 disables)
    SESSION_IDLE_TIMEOUT_SEC = float(os.environ.get('SESSION_IDLE_TIMEOUT_SEC', '1800'))
    # Deliver score events to in-process subscribers from a background task
    BROADCAST_ASYNC_DELIVERY = os.environ.get('BROADCAST_ASYNC_DELIVERY', '0') == '1'
    # Optional: message queue URL (e.g. redis://) to fan out Socket.IO events across workers
    SOCKETIO_MESSAGE_QUEUE = os.environ.get('SOCKETIO_MESSAGE_QUEUE') or None

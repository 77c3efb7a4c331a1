from .util import demo_restricted, session_required

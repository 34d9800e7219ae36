from .gateway import *
from .guilds import *
from .messages import *
from .users import *

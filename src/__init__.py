from .database import Base
from .models import *

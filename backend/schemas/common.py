from pydantic import BaseModel


# Plain {"msg": ...} acknowledgement
class Message(BaseModel):
    msg: str

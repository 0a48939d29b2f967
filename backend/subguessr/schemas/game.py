from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from subguessr.services.identity import identity_of


class Challenge(BaseModel):
    model_config = ConfigDict(frozen=True)

    image_url: str = Field(min_length=1)
    answer: str = Field(min_length=1, description="lowercase community label")

    @field_validator("answer")
    @classmethod
    def lowercase_answer(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("answer must not be blank")
        return v

    @computed_field
    @property
    def image_id(self) -> str:
        return identity_of(self.image_url, self.answer)


class GuessRecord(BaseModel):
    guess: str
    is_correct: bool
    timestamp: int  # epoch ms
    image_url: str | None = None
    answer: str | None = None
    image_id: str | None = None


class ImageStats(BaseModel):
    total_guesses: int = 0
    correct_guesses: int = 0
    incorrect_guesses: int = 0

    @computed_field
    @property
    def success_rate(self) -> int:
        if self.total_guesses <= 0:
            return 0
        # round half up
        return (200 * self.correct_guesses + self.total_guesses) // (2 * self.total_guesses)


class LeaderboardRow(BaseModel):
    rank: int
    username: str
    score: int


class SessionView(BaseModel):
    post_id: str
    username: str
    user_score: int
    challenge: Challenge | None = None
    has_guessed: bool = False
    prior_guess: GuessRecord | None = None
    stats: ImageStats | None = None


class NewGameRequest(BaseModel):
    post_id: str = Field(min_length=1)


class NewGameResponse(BaseModel):
    status: str = "success"
    message: str = "New challenge loaded"
    challenge: Challenge
    stats: ImageStats


class GuessRequest(BaseModel):
    image_url: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    guess: str = Field(min_length=1)
    post_id: str | None = Field(default=None, description="when set, the challenge must be one bound to this post")


class GuessOutcome(BaseModel):
    is_correct: bool
    normalized_guess: str
    correct_answer: str
    new_score: int
    stats: ImageStats


class ShareRequest(BaseModel):
    image_url: str = Field(min_length=1)
    answer: str = Field(min_length=1)


class PostCreated(BaseModel):
    status: str = "success"
    post_id: str
    challenge: Challenge

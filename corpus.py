# corpus.py
"""Plain English prose used to train the default n-gram model.

Any large body of ordinary text works; pass a real quadgram table to
``NgramModel.load`` for stronger scoring on short messages.
"""

ENGLISH = """
The weather report for the northern coast arrived shortly after midnight. The
wind had turned to the west during the evening and the sea was running high
along the whole of the outer channel. All ships in the area were ordered to
remain in harbour until the morning, when the officers would decide whether the
convoy could sail. There was no sign of the enemy, but the lookouts on the cliffs
had reported lights moving slowly to the south at about ten o'clock.

It was the first time that the station had received a message of such length
since the beginning of the month. The operator wrote each group of letters on a
fresh sheet of paper, and when the signal ended he carried the pages to the
officer on duty. Together they set the machine to the key of the day, turned the
wheels to the positions given at the start of the message, and began to type.
Slowly the words appeared, one letter at a time, and the meaning of the text
became clear to them both.

Most people who have never seen such a machine imagine that it must be very
complicated, but the idea behind it is simple enough. When a key is pressed, an
electric current passes through a set of wheels, each of which changes the
letter into another one. The current then strikes a fixed wheel at the end,
which sends it back through the same wheels by a different path, and a small
lamp lights up to show the result. Because the first wheel turns a little every
time a key is pressed, the same letter is almost never changed in the same way
twice in a row.

The people who worked to read these messages during the war were for the most
part young men and women from the universities, together with a number of
officers who had a gift for puzzles and patterns. They worked in long shifts in
huts that were cold in the winter and hot in the summer. Much of their success
came from the careless habits of the operators on the other side, who often
began their messages with the same words, or chose keys that were easy to guess.
A weather report sent every morning at the same hour was of great value, because
the people in the huts could often guess what it would say.

In the early years of the century the country was still largely made up of small
farms and villages. The roads were poor, and in the winter many of them could
not be used at all. Most families grew their own food and made their own
clothes, and the nearest town was often a full day away by cart. When the
railway came, everything began to change. Goods could be carried quickly from
one part of the country to another, and people were able to travel to places
that their parents had only heard about in stories.

She opened the window and looked out over the garden. The rain had stopped and
the evening light was falling across the wet grass. Somewhere in the distance a
dog was barking, and she could hear the sound of children playing in the street
beyond the wall. For a long moment she stood there without moving, thinking of
the letter that had come that morning and of everything that it might mean for
her family. Then she closed the window, drew the curtains, and went down the
stairs to the kitchen where her mother was waiting.

Science is not only a collection of facts but also a way of asking questions
about the world. A good experiment begins with a clear idea of what is to be
measured and why. The results must be recorded carefully, and the work must be
described in enough detail that another person can repeat it and check whether
the same thing happens again. When the results do not agree with what was
expected, that is often the most interesting moment of all, because it means
that there is something new to learn.

The general ordered the troops to hold the bridge at all costs until the
reinforcements arrived from the east. Supplies of food and ammunition were
running low, and the men had not slept properly for three days. At dawn the
attack began with heavy fire from the hills on the far side of the river. By
noon the situation had become very serious, but shortly after two in the
afternoon the first of the relief columns could be seen moving along the road
from the village, and the defenders knew that they would not be left alone.

Our meeting will take place on Thursday at nine in the morning in the main hall
of the library. Please bring the reports that were prepared last week, together
with any notes that you have made since then. We will discuss the plans for the
new building, the budget for the coming year, and the changes to the timetable
that were proposed at the last meeting. If you are not able to attend, please
let the secretary know as soon as possible so that another date can be found.

The history of secret writing is almost as old as the history of writing
itself. In ancient times messages were hidden in the heads of slaves, written
in invisible ink, or scrambled by replacing each letter with the one that
stands three places further on in the alphabet. Over the centuries these
methods became more and more elaborate, and by the time of the great wars of
the last century, machines were being used to do work that would once have
taken a clerk many hours. Yet every new system has sooner or later been broken
by patient people who studied the traffic and looked for the smallest mistake.

There is an old saying that the best way to learn something is to teach it to
somebody else. When you have to explain an idea in your own words, you soon
discover which parts you really understand and which parts you have only been
repeating. Questions from the students are especially useful, because they
often come from a direction that the teacher had never thought about. In this
way the teacher and the students learn from each other, and both come away with
a better understanding than they had before.

The ship left port on a bright morning in early spring with a cargo of wheat,
wool and machinery. For the first week the voyage was calm, and the passengers
spent their days walking on the deck and watching the birds that followed the
ship. Then the weather changed. Heavy clouds came up from the south, the wind
rose to a gale, and for four days and nights the ship was driven far from her
course. When at last the storm passed, the captain found that they were within
sight of an island that did not appear on any of his charts.
"""
